"""
Geocoding proxy routes.

Forwards city searches to GeoNames and street/reverse lookups to Nominatim,
returning normalized suggestions.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.dependencies import get_geocoding_client
from domain.models import LocationKind
from services.geocoding import GeocodingClient

logger = logging.getLogger(__name__)

router = APIRouter()


class SuggestionResponse(BaseModel):
    id: str
    display_name: str
    lat: str
    lon: str
    type: Optional[str] = None
    address: Dict[str, str] = {}


class SuggestionsResponse(BaseModel):
    suggestions: List[SuggestionResponse]


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("", response_model=SuggestionsResponse)
def search_locations(
    q: Optional[str] = None,
    type: Optional[str] = None,
    city: Optional[str] = None,
    limit: int = Query(10, ge=1, le=50),
    geocoder: GeocodingClient = Depends(get_geocoding_client),
):
    """Search cities (type=city) or streets (type=street, optionally within city)."""
    logger.debug("Geocoding called with q=%r type=%r city=%r limit=%s", q, type, city, limit)
    if not q or not type:
        return _error("Missing required parameters: q and type", 400)
    try:
        kind = LocationKind(type)
    except ValueError:
        return _error(f"Unsupported type: {type}", 400)

    if kind == LocationKind.CITY:
        result = geocoder.search_cities(q, limit)
    else:
        result = geocoder.search_streets(q, city, limit)

    if result.failed:
        return _error("Failed to fetch location data", 500)
    return {"suggestions": [s.to_dict() for s in result.suggestions]}


@router.get("/reverse", response_model=SuggestionResponse)
def reverse(
    lat: str,
    lon: str,
    geocoder: GeocodingClient = Depends(get_geocoding_client),
):
    suggestion = geocoder.reverse_geocode(lat, lon)
    if suggestion is None:
        return _error("Location not found", 404)
    return suggestion.to_dict()
