"""Query the location autocomplete from the command line.

Usage:
    python -m scripts.search_locations "Алма" --type city
    python -m scripts.search_locations "Абая" --type street --city Алматы

Hits the real geocoding providers and, unless --no-remembered is given, the
ProKvartiru backend configured in PROKVARTIRU_API_URL.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from domain.models import LocationKind, OptionSource
from services.address_api import AddressApiClient
from services.geocoding import GeocodingClient
from services.location_search import LocationSearchController

LOG = logging.getLogger("search_locations")


def main() -> int:
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Print merged autocomplete options for a query.")
    parser.add_argument("query", help="Text as typed by the user.")
    parser.add_argument("--type", choices=[k.value for k in LocationKind], default="city")
    parser.add_argument("--city", default=None, help="City to restrict street searches to.")
    parser.add_argument("--limit", type=int, default=10)
    parser.add_argument("--no-remembered", action="store_true", help="Skip the remembered-address lookup.")
    args = parser.parse_args()

    controller = LocationSearchController(
        kind=LocationKind(args.type),
        geocoder=GeocodingClient(),
        addresses=None if args.no_remembered else AddressApiClient(),
        city=args.city,
        limit=args.limit,
    )
    state = asyncio.run(controller.search(args.query))
    if state is None:
        return 1
    if state.error:
        LOG.error("Search failed: %s", state.error)
    if not state.options:
        print("Ничего не найдено")
        return 0 if not state.error else 1

    for option in state.options:
        marker = "*" if option.source == OptionSource.REMEMBERED else "-"
        line = f"{marker} {option.label}"
        if option.description:
            line += f" ({option.description})"
        if option.usage_count:
            line += f" [{option.usage_count}]"
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
