"""
FastAPI dependencies for the shared upstream clients.

The clients live on ``app.state`` so the application owns their caches and
HTTP sessions; tests swap them via ``app.dependency_overrides``.
"""
from typing import Optional

from fastapi import Cookie, Depends, Header, Request

from services.address_api import AddressApiClient
from services.geocoding import GeocodingClient


def get_geocoding_client(request: Request) -> GeocodingClient:
    client = getattr(request.app.state, "geocoder", None)
    if client is None:
        client = GeocodingClient()
        request.app.state.geocoder = client
    return client


def get_address_client(request: Request) -> AddressApiClient:
    client = getattr(request.app.state, "address_client", None)
    if client is None:
        client = AddressApiClient()
        request.app.state.address_client = client
    return client


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


def get_user_address_client(
    authorization: Optional[str] = Header(None),
    token: Optional[str] = Cookie(None),
    client: AddressApiClient = Depends(get_address_client),
) -> AddressApiClient:
    """Address client carrying the caller's token (Authorization header, else the token cookie)."""
    user_token = _bearer_token(authorization) or token
    if not user_token:
        return client
    return client.with_token(user_token)
