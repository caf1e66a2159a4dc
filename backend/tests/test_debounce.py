import asyncio
import logging

import pytest

from services.debounce import DebouncedSearch


def _record_pushes(pushes, delay=0.3, settle=0.5):
    """Push (at_seconds, value) pairs and return the (value, fired_at) emissions."""

    async def scenario():
        loop = asyncio.get_running_loop()
        fired = []
        start = loop.time()
        debouncer = DebouncedSearch(lambda value: fired.append((value, loop.time() - start)), delay=delay)
        for at, value in pushes:
            await asyncio.sleep(max(0.0, at - (loop.time() - start)))
            debouncer.push(value)
        await asyncio.sleep(settle)
        return fired

    return asyncio.run(scenario())


def test_only_latest_value_is_emitted_after_quiet_period():
    fired = _record_pushes([(0.0, "a"), (0.1, "ab"), (0.25, "abc")])

    assert len(fired) == 1
    value, at = fired[0]
    assert value == "abc"
    assert 0.53 <= at < 0.75


def test_gap_longer_than_quiet_period_emits_intermediate_value():
    # "ab" sits idle for 0.35s, longer than the 0.3s quiet period
    fired = _record_pushes([(0.0, "a"), (0.1, "ab"), (0.45, "abc")])

    assert [value for value, _ in fired] == ["ab", "abc"]
    assert 0.38 <= fired[0][1] < 0.45
    assert 0.73 <= fired[1][1] < 0.95


def test_dispose_before_quiet_period_suppresses_emission():
    async def scenario():
        fired = []
        debouncer = DebouncedSearch(fired.append, delay=0.3)
        debouncer.push("a")
        await asyncio.sleep(0.1)
        debouncer.dispose()
        debouncer.push("ab")
        await asyncio.sleep(0.4)
        return fired, debouncer

    fired, debouncer = asyncio.run(scenario())

    assert fired == []
    assert debouncer.disposed
    assert not debouncer.pending


def test_async_callback_is_awaited():
    async def scenario():
        seen = []

        async def callback(value):
            await asyncio.sleep(0.01)
            seen.append(value)

        debouncer = DebouncedSearch(callback, delay=0.05)
        debouncer.push("Алм")
        await asyncio.sleep(0.1)
        await debouncer.wait_idle()
        return seen

    assert asyncio.run(scenario()) == ["Алм"]


def test_flush_emits_immediately():
    async def scenario():
        fired = []
        debouncer = DebouncedSearch(fired.append, delay=10)
        debouncer.push("Астана")
        assert debouncer.pending
        debouncer.flush()
        return fired, debouncer.pending

    fired, pending = asyncio.run(scenario())
    assert fired == ["Астана"]
    assert pending is False


def test_separate_pauses_emit_separately():
    async def scenario():
        fired = []
        debouncer = DebouncedSearch(fired.append, delay=0.05)
        debouncer.push("a")
        await asyncio.sleep(0.15)
        debouncer.push("b")
        await asyncio.sleep(0.15)
        return fired

    assert asyncio.run(scenario()) == ["a", "b"]


def test_negative_delay_rejected():
    with pytest.raises(ValueError):
        DebouncedSearch(print, delay=-1)


def test_sync_and_async_callback_errors_are_logged(caplog):
    def failing_sync(value):
        raise RuntimeError(f"sync {value}")

    async def failing_async(value):
        raise RuntimeError(f"async {value}")

    async def scenario():
        sync_debouncer = DebouncedSearch(failing_sync, delay=0.01)
        async_debouncer = DebouncedSearch(failing_async, delay=0.01)
        sync_debouncer.push("a")
        async_debouncer.push("b")
        await asyncio.sleep(0.05)
        await async_debouncer.wait_idle()
        return sync_debouncer.pending

    with caplog.at_level(logging.ERROR, logger="services.debounce"):
        pending = asyncio.run(scenario())

    assert pending is False
    messages = [r.exc_info[1].args[0] for r in caplog.records if r.exc_info]
    assert sorted(messages) == ["async b", "sync a"]
