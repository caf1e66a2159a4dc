"""
Adapters from raw geocoding provider payloads to LocationSuggestion.

Each provider has exactly one adapter; the rest of the code only ever sees
LocationSuggestion.
"""
from __future__ import annotations

from functools import singledispatch
from typing import Any, List

from domain.models import (
    GeoNamesResult,
    LocationSuggestion,
    NominatimResult,
    ProviderResult,
    SuggestionAddress,
)


def geonames_display_name(item: GeoNamesResult) -> str:
    """'<name>[, <adminName1>][, <countryName>]'"""
    parts = [item.name]
    if item.admin_name1:
        parts.append(item.admin_name1)
    if item.country_name:
        parts.append(item.country_name)
    return ", ".join(parts)


@singledispatch
def to_suggestion(item: ProviderResult) -> LocationSuggestion:
    raise TypeError(f"Unsupported provider result: {type(item).__name__}")


@to_suggestion.register
def _(item: GeoNamesResult) -> LocationSuggestion:
    return LocationSuggestion(
        id=item.geoname_id,
        display_name=geonames_display_name(item),
        lat=item.lat,
        lon=item.lng,
        type=item.fcode_name,
        address=SuggestionAddress(
            city=item.name or None,
            state=item.admin_name1,
            country=item.country_name,
        ),
    )


@to_suggestion.register
def _(item: NominatimResult) -> LocationSuggestion:
    return LocationSuggestion(
        id=item.place_id,
        display_name=item.display_name,
        lat=item.lat,
        lon=item.lon,
        type=item.type,
        address=SuggestionAddress.from_dict(item.address),
    )


def parse_geonames_payload(data: Any) -> List[GeoNamesResult]:
    """Extract records from a searchJSON body; anything but a geonames list yields []."""
    if not isinstance(data, dict):
        return []
    items = data.get("geonames")
    if not isinstance(items, list):
        return []
    return [GeoNamesResult.from_json(item) for item in items if isinstance(item, dict)]


def parse_nominatim_payload(data: Any) -> List[NominatimResult]:
    """Nominatim /search returns a list, /reverse a single object."""
    if isinstance(data, dict):
        if data.get("error"):
            return []
        data = [data]
    if not isinstance(data, list):
        return []
    return [NominatimResult.from_json(item) for item in data if isinstance(item, dict)]
