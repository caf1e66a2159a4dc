import os

# Basic settings helper to read environment configuration.


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


def _as_int(val: str | None, default: int) -> int:
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        # GeoNames (city search)
        self.GEONAMES_BASE_URL: str = os.getenv("GEONAMES_BASE_URL", "http://api.geonames.org")
        self.GEONAMES_USERNAME: str = os.getenv("GEONAMES_USERNAME", "oktamov_shohjahon")

        # Nominatim (street search, reverse geocoding)
        self.NOMINATIM_BASE_URL: str = os.getenv(
            "NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org"
        )
        self.NOMINATIM_USER_AGENT: str | None = os.getenv("NOMINATIM_USER_AGENT")
        self.NOMINATIM_REFERER: str | None = os.getenv("NOMINATIM_REFERER")
        self.NOMINATIM_MIN_INTERVAL: float = _as_float(os.getenv("NOMINATIM_MIN_INTERVAL"), 1.1)

        self.GEOCODING_TIMEOUT_SECONDS: float = _as_float(
            os.getenv("GEOCODING_TIMEOUT_SECONDS"), 5.0
        )

        # Result cache
        self.GEOCODE_CACHE_MAX_ENTRIES: int = _as_int(os.getenv("GEOCODE_CACHE_MAX_ENTRIES"), 512)
        self.GEOCODE_CACHE_TTL_SECONDS: int = _as_int(
            os.getenv("GEOCODE_CACHE_TTL_SECONDS"), 24 * 3600
        )
        # When set, a persistent SQLite cache is used instead of the in-memory one
        self.GEOCODE_CACHE_PATH: str | None = os.getenv("GEOCODE_CACHE_PATH")

        # ProKvartiru backend REST API
        self.PROKVARTIRU_API_URL: str = os.getenv(
            "PROKVARTIRU_API_URL", "https://real-estate-backend-b0go.onrender.com/api"
        )
        self.PROKVARTIRU_API_TIMEOUT_SECONDS: float = _as_float(
            os.getenv("PROKVARTIRU_API_TIMEOUT_SECONDS"), 10.0
        )

        self.SEARCH_DEBOUNCE_SECONDS: float = _as_float(os.getenv("SEARCH_DEBOUNCE_SECONDS"), 0.3)
        self.REMEMBERED_ADDRESSES_ENABLED: bool = _as_bool(
            os.getenv("REMEMBERED_ADDRESSES_ENABLED"), True
        )


settings = Settings()
