"""
Core domain models for location search.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union


class LocationKind(str, Enum):
    """What a location search is looking for."""
    CITY = "city"
    STREET = "street"


class OptionSource(str, Enum):
    """Where a LocationOption came from."""
    GEOCODING = "geocoding"
    REMEMBERED = "remembered"


def _str_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class SuggestionAddress:
    """Structured address parts as reported by a geocoding provider."""
    city: Optional[str] = None
    town: Optional[str] = None
    village: Optional[str] = None
    street: Optional[str] = None
    road: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SuggestionAddress":
        data = data or {}
        return cls(
            city=_str_or_none(data.get("city")),
            town=_str_or_none(data.get("town")),
            village=_str_or_none(data.get("village")),
            street=_str_or_none(data.get("street")),
            road=_str_or_none(data.get("road")),
            country=_str_or_none(data.get("country")),
            state=_str_or_none(data.get("state")),
            postcode=_str_or_none(data.get("postcode")),
        )

    def to_dict(self) -> Dict[str, str]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class LocationSuggestion:
    """A single geocoding hit, normalized across providers."""
    id: str
    display_name: str
    lat: str
    lon: str
    type: Optional[str] = None
    address: SuggestionAddress = field(default_factory=SuggestionAddress)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "lat": self.lat,
            "lon": self.lon,
            "type": self.type,
            "address": self.address.to_dict(),
        }


@dataclass(frozen=True)
class GeoNamesResult:
    """Raw record from the GeoNames searchJSON endpoint."""
    provider: ClassVar[str] = "geonames"

    geoname_id: str
    name: str
    admin_name1: Optional[str] = None
    country_name: Optional[str] = None
    lat: str = ""
    lng: str = ""
    fcode_name: Optional[str] = None

    @classmethod
    def from_json(cls, item: Dict[str, Any]) -> "GeoNamesResult":
        return cls(
            geoname_id=str(item.get("geonameId", "")),
            name=str(item.get("name") or ""),
            admin_name1=_str_or_none(item.get("adminName1")),
            country_name=_str_or_none(item.get("countryName")),
            lat=str(item.get("lat", "")),
            lng=str(item.get("lng", "")),
            fcode_name=_str_or_none(item.get("fcodeName")),
        )


@dataclass(frozen=True)
class NominatimResult:
    """Raw record from the Nominatim search/reverse endpoints."""
    provider: ClassVar[str] = "nominatim"

    place_id: str
    display_name: str
    lat: str = ""
    lon: str = ""
    type: Optional[str] = None
    address: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, item: Dict[str, Any]) -> "NominatimResult":
        address = item.get("address")
        return cls(
            place_id=str(item.get("place_id", "")),
            display_name=str(item.get("display_name") or ""),
            lat=str(item.get("lat", "")),
            lon=str(item.get("lon", "")),
            type=_str_or_none(item.get("type")),
            address=address if isinstance(address, dict) else {},
        )


ProviderResult = Union[GeoNamesResult, NominatimResult]


@dataclass
class GeocodingResult:
    """Outcome of a provider search. Never raised, always returned."""
    suggestions: List[LocationSuggestion] = field(default_factory=list)
    error: Optional[str] = None
    error_kind: Optional[str] = None  # "network" or "upstream"

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class RememberedAddress:
    """Address saved server-side by some user. Owned by the backend."""
    id: str
    city: str
    street: str
    building: str
    residential_complex: Optional[str] = None
    usage_count: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RememberedAddress":
        usage = data.get("usageCount", 0)
        try:
            usage_count = int(usage or 0)
        except (TypeError, ValueError):
            usage_count = 0
        return cls(
            id=str(data.get("_id") or data.get("id") or ""),
            city=str(data.get("city") or ""),
            street=str(data.get("street") or ""),
            building=str(data.get("building") or ""),
            residential_complex=_str_or_none(data.get("residentialComplex")),
            usage_count=usage_count,
        )


@dataclass(frozen=True)
class LocationOption:
    """UI-facing suggestion merged from geocoding and remembered addresses."""
    value: str
    label: str
    description: str = ""
    source: OptionSource = OptionSource.GEOCODING
    country: Optional[str] = None
    usage_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "value": self.value,
            "label": self.label,
            "description": self.description,
            "source": self.source.value,
        }
        if self.country is not None:
            data["country"] = self.country
        if self.usage_count is not None:
            data["usageCount"] = self.usage_count
        return data


@dataclass
class SearchState:
    """Snapshot of a location search, as published to the UI."""
    query: str = ""
    options: List[LocationOption] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None  # set when a request failed, None for "no results"
    seq: int = 0
