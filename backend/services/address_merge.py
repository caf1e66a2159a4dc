"""
Merge remembered addresses with live geocoding suggestions.

Remembered addresses always come first: they win label collisions and sort
ahead of geocoding hits. Among remembered options, higher usage counts come
first.
"""
from __future__ import annotations

from functools import cmp_to_key
from typing import Iterable, List, Optional, Sequence

from domain.models import (
    LocationKind,
    LocationOption,
    LocationSuggestion,
    OptionSource,
    RememberedAddress,
)

COMPLEX_SEPARATOR = " • "


def _join(parts: Iterable[Optional[str]], sep: str = ", ") -> str:
    return sep.join(p for p in parts if p)


def suggestion_to_option(suggestion: LocationSuggestion, kind: LocationKind) -> LocationOption:
    """
    Map a geocoding suggestion to an option.

    Cities are labelled by city, town or village; streets by street or road.
    Without any of those the provider's display name is used as is.
    """
    address = suggestion.address
    label = suggestion.display_name
    description = ""

    if kind == LocationKind.CITY:
        name = address.city or address.town or address.village
        if name:
            label = name
            description = _join([address.state, address.country])
    else:
        name = address.street or address.road
        if name:
            label = name
            description = _join([address.city or address.town, address.state, address.country])

    return LocationOption(
        value=label,
        label=label,
        description=description,
        source=OptionSource.GEOCODING,
        country=address.country,
    )


def remembered_to_option(address: RememberedAddress, kind: LocationKind) -> LocationOption:
    if kind == LocationKind.CITY:
        label = address.city
        description = _join([address.street, address.building])
    else:
        label = address.street
        description = address.building
    if address.residential_complex:
        description = _join([description, address.residential_complex], COMPLEX_SEPARATOR)

    return LocationOption(
        value=label,
        label=label,
        description=description,
        source=OptionSource.REMEMBERED,
        usage_count=address.usage_count,
    )


def _compare_options(a: LocationOption, b: LocationOption) -> int:
    if a.source != b.source:
        return -1 if a.source == OptionSource.REMEMBERED else 1
    # Missing counts compare equal; stable sort keeps input order
    if a.usage_count is not None and b.usage_count is not None:
        return b.usage_count - a.usage_count
    return 0


def dedupe_options(options: Iterable[LocationOption]) -> List[LocationOption]:
    """Keep the first option for each value; drop options with an empty value."""
    seen: set[str] = set()
    unique: List[LocationOption] = []
    for option in options:
        if not option.value or option.value in seen:
            continue
        seen.add(option.value)
        unique.append(option)
    return unique


def rank_options(options: Iterable[LocationOption]) -> List[LocationOption]:
    # list.sort is stable, equal items keep their input order
    return sorted(options, key=cmp_to_key(_compare_options))


def merge_location_options(
    geocode_results: Sequence[LocationSuggestion],
    remembered: Sequence[RememberedAddress],
    kind: LocationKind,
) -> List[LocationOption]:
    kind = LocationKind(kind)
    remembered_opts = [remembered_to_option(a, kind) for a in remembered]
    geocoding_opts = [suggestion_to_option(s, kind) for s in geocode_results]
    return rank_options(dedupe_options(remembered_opts + geocoding_opts))


def remembered_options(
    remembered: Sequence[RememberedAddress], kind: LocationKind
) -> List[LocationOption]:
    """Options shown before the user has typed enough to search."""
    return merge_location_options([], remembered, kind)
