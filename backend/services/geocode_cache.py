"""
Result caches for geocoding searches.

Two implementations share the same get/put/clear surface:
- MemoryGeocodeCache: bounded LRU with TTL, the default.
- SqliteGeocodeCache: persistent, TTL-only, for long-running deployments.
"""
from __future__ import annotations

import dataclasses
import json
import logging
import os
import sqlite3
import threading
import time
from collections import OrderedDict
from typing import List, Optional, Tuple

from domain.models import GeocodingResult, LocationSuggestion, SuggestionAddress

logger = logging.getLogger(__name__)

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
DATA_DIR = os.path.join(BASE_DIR, "data")
GEOCODE_CACHE_DB_FILENAME = "geocode_cache.sqlite"


def _result_to_json(result: GeocodingResult) -> str:
    return json.dumps([s.to_dict() for s in result.suggestions], ensure_ascii=False)


def _result_from_json(payload: str) -> Optional[GeocodingResult]:
    try:
        items = json.loads(payload)
    except ValueError:
        return None
    suggestions: List[LocationSuggestion] = []
    for item in items or []:
        try:
            suggestions.append(
                LocationSuggestion(
                    id=str(item.get("id", "")),
                    display_name=item.get("display_name", ""),
                    lat=str(item.get("lat", "")),
                    lon=str(item.get("lon", "")),
                    type=item.get("type"),
                    address=SuggestionAddress.from_dict(item.get("address")),
                )
            )
        except (AttributeError, TypeError):
            continue
    return GeocodingResult(suggestions=suggestions)


def _copy_result(result: GeocodingResult) -> GeocodingResult:
    # Suggestions are frozen; a new list keeps callers from editing cached entries
    return dataclasses.replace(result, suggestions=list(result.suggestions))


class MemoryGeocodeCache:
    """In-process LRU cache; entries expire after ttl_seconds (0 disables expiry)."""

    def __init__(self, max_entries: int = 512, ttl_seconds: int = 24 * 3600):
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._entries: "OrderedDict[str, Tuple[float, GeocodingResult]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[GeocodingResult]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, result = entry
            if self._expired(stored_at, time.time()):
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return _copy_result(result)

    def put(self, key: str, result: GeocodingResult) -> None:
        with self._lock:
            self._entries[key] = (time.time(), _copy_result(result))
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _expired(self, stored_at: float, now: float) -> bool:
        return self.ttl_seconds > 0 and (now - stored_at) > self.ttl_seconds

    def __len__(self) -> int:
        with self._lock:
            now = time.time()
            for key in [k for k, (stored_at, _) in self._entries.items() if self._expired(stored_at, now)]:
                del self._entries[key]
            return len(self._entries)


class SqliteGeocodeCache:
    def __init__(self, db_path: Optional[str] = None, ttl_seconds: int = 24 * 3600):
        self.db_path = db_path or os.path.join(DATA_DIR, GEOCODE_CACHE_DB_FILENAME)
        self.ttl_seconds = ttl_seconds
        os.makedirs(os.path.dirname(os.path.abspath(self.db_path)), exist_ok=True)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._lock = threading.Lock()
        self._init_schema()

    def _init_schema(self) -> None:
        with self._lock:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS geocode_results (
                    cache_key TEXT PRIMARY KEY,
                    response_json TEXT NOT NULL,
                    created_at INTEGER NOT NULL
                )
                """
            )
            self._conn.commit()

    def get(self, key: str) -> Optional[GeocodingResult]:
        """Return the cached result for key unless missing or expired."""
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT response_json, created_at FROM geocode_results WHERE cache_key=?",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Geocode cache read failed for %s: %s", key, exc)
            return None
        if not row:
            return None
        response_json, created_at = row
        if self.ttl_seconds > 0 and (time.time() - created_at) > self.ttl_seconds:
            return None
        return _result_from_json(response_json)

    def put(self, key: str, result: GeocodingResult) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT OR REPLACE INTO geocode_results (cache_key, response_json, created_at) VALUES (?, ?, ?)",
                    (key, _result_to_json(result), int(time.time())),
                )
                self._conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Geocode cache write failed for %s: %s", key, exc)

    def clear(self) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM geocode_results")
            self._conn.commit()

    def __len__(self) -> int:
        cutoff = int(time.time()) - self.ttl_seconds if self.ttl_seconds > 0 else 0
        with self._lock:
            (count,) = self._conn.execute(
                "SELECT COUNT(*) FROM geocode_results WHERE created_at >= ?", (cutoff,)
            ).fetchone()
        return int(count)

    def close(self) -> None:
        self._conn.close()
