"""Geocoding client: GeoNames for cities, OpenStreetMap Nominatim for streets.

Failures never escape the client: every search returns a GeocodingResult,
with ``error`` set when the upstream call failed.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from typing import Any, Optional, Protocol

import requests

from domain.models import GeocodingResult, LocationSuggestion
from services.geocode_cache import MemoryGeocodeCache, SqliteGeocodeCache
from services.providers import (
    parse_geonames_payload,
    parse_nominatim_payload,
    to_suggestion,
)
from settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

FALLBACK_UA = "ProKvartiru/1.0 (contact: example@example.com)"
CITY_SEARCH_ERROR = "Failed to search cities"
STREET_SEARCH_ERROR = "Failed to search streets"


class GeocodingError(Exception):
    """Base class for upstream geocoding failures."""

    kind = "upstream"


class NetworkError(GeocodingError):
    """Transport-level failure: DNS, connection, timeout."""

    kind = "network"


class UpstreamError(GeocodingError):
    """Provider answered, but with a non-2xx status or an unreadable body."""

    kind = "upstream"


class GeocodeCache(Protocol):
    def get(self, key: str) -> Optional[GeocodingResult]: ...

    def put(self, key: str, result: GeocodingResult) -> None: ...

    def clear(self) -> None: ...

    def __len__(self) -> int: ...


def _redact_email(ua: str) -> str:
    if "@" not in ua:
        return ua
    return re.sub(r"\S+@\S+", "<redacted>", ua)


def city_cache_key(query: str, limit: int) -> str:
    return f"city:{query}:{limit}"


def street_cache_key(query: str, city: Optional[str], limit: int) -> str:
    return f"street:{query}:{city}:{limit}"


def street_query_text(query: str, city: Optional[str]) -> str:
    """Compose the free-text street query, qualified by city when one is given."""
    if city and city.strip():
        return f"{query}, {city.strip()}"
    return query


class GeocodingClient:
    def __init__(
        self,
        cache: Optional[GeocodeCache] = None,
        session: Optional[requests.Session] = None,
        geonames_base_url: Optional[str] = None,
        geonames_username: Optional[str] = None,
        nominatim_base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None,
        timeout: Optional[float] = None,
        min_interval: Optional[float] = None,
        config: Settings = default_settings,
    ):
        self.cache = cache if cache is not None else build_geocode_cache(config)
        self._session = session or requests.Session()
        self.geonames_base_url = (geonames_base_url or config.GEONAMES_BASE_URL).rstrip("/")
        self.geonames_username = geonames_username or config.GEONAMES_USERNAME
        self.nominatim_base_url = (nominatim_base_url or config.NOMINATIM_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.GEOCODING_TIMEOUT_SECONDS
        self.min_interval = (
            min_interval if min_interval is not None else config.NOMINATIM_MIN_INTERVAL
        )

        ua = user_agent or config.NOMINATIM_USER_AGENT
        if ua is None:
            logger.warning(
                "NOMINATIM_USER_AGENT not set in environment; using fallback UA. "
                "This may violate Nominatim usage policy."
            )
            ua = FALLBACK_UA
        logger.debug("Nominatim User-Agent: %s", _redact_email(ua))
        self.nominatim_headers = {"User-Agent": ua, "Accept": "application/json"}
        referer = referer or config.NOMINATIM_REFERER
        if referer:
            self.nominatim_headers["Referer"] = referer

        self._throttle_lock = threading.Lock()
        self._last_request_ts = 0.0

    def _throttled_get(self, url: str, *, params: dict[str, Any]) -> requests.Response:
        """GET against Nominatim, spaced at least min_interval seconds apart."""
        with self._throttle_lock:
            now = time.time()
            delta = now - self._last_request_ts
            if delta < self.min_interval:
                time.sleep(self.min_interval - delta)
            self._last_request_ts = time.time()
        return self._session.get(
            url, params=params, headers=self.nominatim_headers, timeout=self.timeout
        )

    def _read_json(self, send, url: str) -> Any:
        try:
            resp = send()
        except requests.RequestException as exc:
            raise NetworkError(f"request to {url} failed: {exc}") from exc
        if not 200 <= resp.status_code < 300:
            raise UpstreamError(f"{url} answered HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError(f"{url} returned invalid JSON: {exc}") from exc

    def _fetch_geonames(self, query: str, limit: int) -> Any:
        url = f"{self.geonames_base_url}/searchJSON"
        params = {
            "name_startsWith": query,
            "maxRows": str(limit),
            "username": self.geonames_username,
            "featureClass": "P",  # populated places
        }
        data = self._read_json(
            lambda: self._session.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            ),
            url,
        )
        # GeoNames reports quota/auth problems in a 200 body
        if isinstance(data, dict) and "status" in data and "geonames" not in data:
            message = (data.get("status") or {}).get("message", "unknown error")
            raise UpstreamError(f"GeoNames error: {message}")
        return data

    def _fetch_nominatim(self, path: str, params: dict[str, Any]) -> Any:
        url = f"{self.nominatim_base_url}/{path}"
        return self._read_json(lambda: self._throttled_get(url, params=params), url)

    def search_cities(self, query: str, limit: int = 10) -> GeocodingResult:
        """Search populated places whose name starts with ``query``."""
        key = city_cache_key(query, limit)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Geocode cache hit %s", key)
            return cached

        try:
            data = self._fetch_geonames(query, limit)
        except GeocodingError as exc:
            logger.warning("City search failed for %r: %s", query, exc)
            return GeocodingResult(error=CITY_SEARCH_ERROR, error_kind=exc.kind)

        suggestions = [to_suggestion(item) for item in parse_geonames_payload(data)]
        result = GeocodingResult(suggestions=suggestions)
        self.cache.put(key, result)
        logger.debug("Found %d cities for %r", len(suggestions), query)
        return result

    def search_streets(
        self, query: str, city: Optional[str] = None, limit: int = 10
    ) -> GeocodingResult:
        """Search streets, optionally restricted to ``city``."""
        key = street_cache_key(query, city, limit)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Geocode cache hit %s", key)
            return cached

        params = {
            "q": street_query_text(query, city),
            "format": "json",
            "addressdetails": "1",
            "limit": str(limit),
            "featuretype": "street",
        }
        try:
            data = self._fetch_nominatim("search", params)
        except GeocodingError as exc:
            logger.warning("Street search failed for %r (city=%r): %s", query, city, exc)
            return GeocodingResult(error=STREET_SEARCH_ERROR, error_kind=exc.kind)

        suggestions = [to_suggestion(item) for item in parse_nominatim_payload(data)]
        result = GeocodingResult(suggestions=suggestions)
        self.cache.put(key, result)
        logger.debug("Found %d streets for %r (city=%r)", len(suggestions), query, city)
        return result

    def reverse_geocode(self, lat: str, lon: str) -> Optional[LocationSuggestion]:
        """Reverse geocode a coordinate. Returns None on network or parsing errors."""
        params = {
            "lat": str(lat),
            "lon": str(lon),
            "format": "json",
            "addressdetails": "1",
        }
        try:
            data = self._fetch_nominatim("reverse", params)
        except GeocodingError as exc:
            logger.warning("Nominatim reverse geocode error for lat=%s lon=%s: %s", lat, lon, exc)
            return None
        results = parse_nominatim_payload(data)
        if not results:
            return None
        return to_suggestion(results[0])

    def clear_cache(self) -> None:
        self.cache.clear()

    def cache_size(self) -> int:
        return len(self.cache)


def build_geocode_cache(config: Settings = default_settings) -> GeocodeCache:
    """Pick the cache implementation configured in settings."""
    if config.GEOCODE_CACHE_PATH:
        return SqliteGeocodeCache(
            db_path=config.GEOCODE_CACHE_PATH, ttl_seconds=config.GEOCODE_CACHE_TTL_SECONDS
        )
    return MemoryGeocodeCache(
        max_entries=config.GEOCODE_CACHE_MAX_ENTRIES,
        ttl_seconds=config.GEOCODE_CACHE_TTL_SECONDS,
    )
