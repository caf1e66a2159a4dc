"""
Location search controller.

Wires debounced input to the geocoding client and the remembered-address API,
merges both into ranked options and publishes them. Each search takes a
sequence number; only the most recently issued search may publish, so a slow
earlier response never overwrites a newer one.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Callable, List, Optional

from domain.models import (
    GeocodingResult,
    LocationKind,
    RememberedAddress,
    SearchState,
)
from services.address_api import AddressApiClient, AddressApiError
from services.address_merge import merge_location_options, remembered_options
from services.debounce import DebouncedSearch
from services.geocoding import GeocodingClient
from settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


class LocationSearchController:
    def __init__(
        self,
        kind: LocationKind,
        geocoder: GeocodingClient,
        addresses: Optional[AddressApiClient] = None,
        city: Optional[str] = None,
        show_remembered: Optional[bool] = None,
        on_update: Optional[Callable[[SearchState], None]] = None,
        delay: Optional[float] = None,
        min_query_length: int = MIN_QUERY_LENGTH,
        limit: int = 10,
        remembered_limit: int = 5,
        config: Settings = default_settings,
    ):
        self.kind = LocationKind(kind)
        self.geocoder = geocoder
        self.addresses = addresses
        self.city = city
        if show_remembered is None:
            show_remembered = config.REMEMBERED_ADDRESSES_ENABLED
        self.show_remembered = show_remembered and addresses is not None
        self.on_update = on_update
        self.min_query_length = min_query_length
        self.limit = limit
        self.remembered_limit = remembered_limit
        self.selected: Optional[str] = None
        self.state = SearchState()
        self._seq = 0
        self._query = ""
        self.debouncer = DebouncedSearch(
            self.search, delay if delay is not None else config.SEARCH_DEBOUNCE_SECONDS
        )

    # -- input ---------------------------------------------------------

    def input(self, text: str) -> None:
        """Handle a keystroke. The search itself runs after the debounce delay."""
        self._query = text
        if not text.strip():
            # Invalidate anything in flight and clear the list right away
            seq = self._next_seq()
            self._publish(seq, query=text, options=[], loading=False, error=None)
        self.debouncer.push(text)

    def select(self, value: str) -> None:
        """User picked an option; pending and in-flight searches are dropped."""
        self.selected = value
        self._query = value
        seq = self._next_seq()
        self._publish(seq, query=value, loading=False)

    @property
    def query(self) -> str:
        """Text as last typed, which may be ahead of the published state."""
        return self._query

    def set_city(self, city: Optional[str]) -> None:
        self.city = city

    def dispose(self) -> None:
        self.debouncer.dispose()
        self._next_seq()

    # -- searching -----------------------------------------------------

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def is_current(self, seq: int) -> bool:
        return seq == self._seq

    async def search(self, query: str) -> Optional[SearchState]:
        """
        Run one search. Returns the published state, or None if a newer search
        was issued while this one was waiting on the network.
        """
        seq = self._next_seq()
        if len(query.strip()) < self.min_query_length:
            return await self.refresh_remembered(query, seq=seq)

        self._publish(seq, query=query, loading=True)
        result, remembered = await asyncio.gather(
            asyncio.to_thread(self._geocode, query),
            asyncio.to_thread(self._lookup_remembered, query),
        )
        if not self.is_current(seq):
            logger.debug("Dropping stale %s search #%d for %r", self.kind.value, seq, query)
            return None

        if result.failed:
            logger.warning("Geocoding error for %r: %s", query, result.error)
        options = merge_location_options(result.suggestions, remembered, self.kind)
        return self._publish(seq, query=query, options=options, loading=False, error=result.error)

    async def refresh_remembered(self, query: str = "", seq: Optional[int] = None) -> Optional[SearchState]:
        """Show remembered addresses only, as before the user has typed enough."""
        if seq is None:
            seq = self._next_seq()
        addresses = await asyncio.to_thread(self._load_remembered)
        if not self.is_current(seq):
            return None
        return self._publish(
            seq,
            query=query,
            options=remembered_options(addresses, self.kind),
            loading=False,
            error=None,
        )

    def _geocode(self, query: str) -> GeocodingResult:
        if self.kind == LocationKind.CITY:
            return self.geocoder.search_cities(query, self.limit)
        return self.geocoder.search_streets(query, self.city, self.limit)

    def _lookup_remembered(self, query: str) -> List[RememberedAddress]:
        if not self.show_remembered:
            return []
        try:
            if self.kind == LocationKind.CITY:
                return self.addresses.search_addresses(query, self.remembered_limit)
            if self.city:
                return self.addresses.get_remembered_addresses(self.city, self.remembered_limit)
        except AddressApiError as exc:
            logger.error("Error searching remembered addresses: %s", exc)
        return []

    def _load_remembered(self) -> List[RememberedAddress]:
        if not self.show_remembered:
            return []
        try:
            if self.kind == LocationKind.CITY:
                return self.addresses.get_popular_addresses(self.limit)
            if self.city:
                return self.addresses.get_remembered_addresses(self.city, self.limit)
        except AddressApiError as exc:
            logger.error("Error loading remembered addresses: %s", exc)
        return []

    def _publish(self, seq: int, **changes) -> SearchState:
        self.state = dataclasses.replace(self.state, seq=seq, **changes)
        if self.on_update is not None:
            self.on_update(self.state)
        return self.state
