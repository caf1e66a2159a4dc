import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from services.geocode_cache import MemoryGeocodeCache  # noqa: E402
from services.geocoding import GeocodingClient  # noqa: E402


class DummyResponse:
    def __init__(self, json_data=None, status_code=200, content=b"{}"):
        self._json = json_data
        self.status_code = status_code
        self.content = content

    def json(self):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json


@pytest.fixture
def dummy_response():
    return DummyResponse


@pytest.fixture
def make_client():
    """GeocodingClient with an in-memory cache and no Nominatim throttling."""

    def _make(session, **kwargs):
        kwargs.setdefault("cache", MemoryGeocodeCache(max_entries=64))
        return GeocodingClient(
            session=session,
            user_agent="prokvartiru-tests/1.0",
            min_interval=0.0,
            **kwargs,
        )

    return _make
