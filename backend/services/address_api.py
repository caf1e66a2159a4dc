"""
Client for the ProKvartiru backend's remembered-address endpoints.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from domain.models import RememberedAddress
from settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class AddressApiError(Exception):
    """The backend could not be reached or rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(AddressApiError):
    """401 from the backend; the session cookie is missing or expired."""


class AddressApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
        config: Settings = default_settings,
    ):
        self.base_url = (base_url or config.PROKVARTIRU_API_URL).rstrip("/")
        self.token = token or None
        self.timeout = timeout if timeout is not None else config.PROKVARTIRU_API_TIMEOUT_SECONDS
        self._session = session or requests.Session()
        self._session.headers.setdefault("Content-Type", "application/json")

    def with_token(self, token: Optional[str]) -> "AddressApiClient":
        """Client acting for one user; shares this client's session."""
        return AddressApiClient(
            base_url=self.base_url, session=self._session, timeout=self.timeout, token=token
        )

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        if self.token:
            # Per-request header, the session is shared between users
            kwargs["headers"] = {**kwargs.get("headers", {}), "Authorization": f"Bearer {self.token}"}
        try:
            resp = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise AddressApiError(f"{method} {path} failed: {exc}") from exc
        if resp.status_code == 401:
            raise UnauthorizedError(f"{method} {path} unauthorized", status_code=401)
        if not 200 <= resp.status_code < 300:
            raise AddressApiError(
                f"{method} {path} answered HTTP {resp.status_code}", status_code=resp.status_code
            )
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise AddressApiError(f"{method} {path} returned invalid JSON") from exc

    def _get_addresses(self, path: str, params: Dict[str, Any]) -> List[RememberedAddress]:
        data = self._request("GET", path, params=params)
        items = data.get("addresses") if isinstance(data, dict) else None
        addresses = [RememberedAddress.from_dict(item) for item in items or [] if isinstance(item, dict)]
        logger.debug("GET %s %s -> %d addresses", path, params, len(addresses))
        return addresses

    def get_popular_addresses(self, limit: int = 10) -> List[RememberedAddress]:
        return self._get_addresses("/addresses/popular", {"limit": limit})

    def get_remembered_addresses(self, city: str, limit: int = 10) -> List[RememberedAddress]:
        return self._get_addresses("/addresses/remembered", {"city": city, "limit": limit})

    def search_addresses(self, q: str, limit: int = 10) -> List[RememberedAddress]:
        return self._get_addresses("/addresses/search", {"q": q, "limit": limit})

    def remember_address(
        self,
        city: str,
        street: str,
        building: str,
        residential_complex: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Persist an address so it is suggested to future users."""
        payload: Dict[str, Any] = {"city": city, "street": street, "building": building}
        if residential_complex:
            payload["residentialComplex"] = residential_complex
        data = self._request("POST", "/addresses/remembered", json=payload)
        return data if isinstance(data, dict) else {}
