"""
Location option routes.

Returns the merged, ranked autocomplete list: remembered addresses first,
then geocoding suggestions.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from api.dependencies import get_geocoding_client, get_user_address_client
from domain.models import LocationKind
from services.address_api import AddressApiClient, AddressApiError, UnauthorizedError
from services.geocoding import GeocodingClient
from services.location_search import LocationSearchController

router = APIRouter()


class LocationOptionResponse(BaseModel):
    value: str
    label: str
    description: str = ""
    source: str
    country: Optional[str] = None
    usageCount: Optional[int] = None


class OptionsResponse(BaseModel):
    query: str
    options: List[LocationOptionResponse]
    error: Optional[str] = None


class RememberAddressRequest(BaseModel):
    city: str
    street: str
    building: str
    residentialComplex: Optional[str] = None


@router.get("/options", response_model=OptionsResponse)
async def location_options(
    type: LocationKind,
    q: str = "",
    city: Optional[str] = None,
    limit: int = Query(10, ge=1, le=50),
    remembered: bool = True,
    geocoder: GeocodingClient = Depends(get_geocoding_client),
    addresses: AddressApiClient = Depends(get_user_address_client),
):
    """
    Autocomplete options for a city or street field.

    Queries shorter than two characters return remembered addresses only.
    `error` is set when the geocoding provider failed, so an empty list can be
    told apart from "nothing found".
    """
    controller = LocationSearchController(
        kind=type,
        geocoder=geocoder,
        addresses=addresses,
        city=city,
        show_remembered=remembered,
        limit=limit,
    )
    state = await controller.search(q)
    return {
        "query": q,
        "options": [o.to_dict() for o in state.options],
        "error": state.error,
    }


@router.post("/remembered")
def remember_address(
    payload: RememberAddressRequest,
    addresses: AddressApiClient = Depends(get_user_address_client),
):
    try:
        return addresses.remember_address(
            city=payload.city,
            street=payload.street,
            building=payload.building,
            residential_complex=payload.residentialComplex,
        )
    except UnauthorizedError:
        raise HTTPException(status_code=401, detail="Not authenticated")
    except AddressApiError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
