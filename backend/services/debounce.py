"""
Debounced search utility.

Delays a search until the user stops typing: every new input restarts the
quiet period, and only the latest value is emitted once it elapses.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger(__name__)

Callback = Callable[[str], Union[Awaitable[Any], Any]]


class DebouncedSearch:
    """
    Trailing-edge debounce on the running asyncio loop.

    Work started by an emission is not cancelled by later input; callers that
    need ordering must discard stale results themselves.
    """

    def __init__(self, callback: Callback, delay: float = 0.3):
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.callback = callback
        self.delay = delay
        self._timer: Optional[asyncio.TimerHandle] = None
        self._value: Optional[str] = None
        self._disposed = False
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def push(self, value: str) -> None:
        """Record new input and restart the quiet period."""
        if self._disposed:
            return
        self._value = value
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._fire)

    def flush(self) -> None:
        """Emit the pending value now instead of waiting."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._fire()

    def dispose(self) -> None:
        """Drop any pending emission; later pushes are ignored."""
        self._disposed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def wait_idle(self) -> None:
        """Wait until callbacks started by emissions have finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _fire(self) -> None:
        self._timer = None
        if self._disposed or self._value is None:
            return
        value = self._value
        try:
            result = self.callback(value)
        except Exception:
            logger.error("Debounced search callback failed", exc_info=True)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced search callback failed", exc_info=exc)
