from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    v = str(raw).strip().lower()
    if v in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "f", "no", "n", "off"}:
        return False
    return default


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    v = raw.strip()
    return v or None


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, float(default)))


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    return tuple(p.strip() for p in raw.split(",") if p.strip())


@dataclass(frozen=True)
class Settings:
    """Process configuration, read once from the environment.

    A missing provider credential is not an error: it disables that provider.
    """

    rentcast_api_key: Optional[str]
    census_api_key: Optional[str]
    visual_crossing_api_key: Optional[str]
    census_enabled: bool
    nominatim_enabled: bool
    http_user_agent: str
    provider_timeout_s: float
    db_path: str
    property_cache_ttl_days: int
    climate_cache_ttl_days: int
    weather_history_years: int
    attach_climate: bool
    authoritative_sources: Tuple[str, ...]
    sufficient_fields: Tuple[str, ...]

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            rentcast_api_key=_env_str("RENTCAST_API_KEY"),
            census_api_key=_env_str("CENSUS_API_KEY"),
            visual_crossing_api_key=_env_str("VISUAL_CROSSING_API_KEY"),
            census_enabled=_env_bool("HE_CENSUS_ENABLED", True),
            nominatim_enabled=_env_bool("HE_NOMINATIM_ENABLED", True),
            http_user_agent=_env_str("HE_HTTP_USER_AGENT")
            or "home-enrichment/0.1 (property lookup)",
            provider_timeout_s=_env_float("HE_PROVIDER_TIMEOUT_S", 10.0),
            db_path=_env_str("HE_DB_PATH") or "./enrichment_cache.sqlite",
            property_cache_ttl_days=_env_int("HE_PROPERTY_CACHE_TTL_DAYS", 30),
            climate_cache_ttl_days=_env_int("HE_CLIMATE_CACHE_TTL_DAYS", 90),
            weather_history_years=_env_int("HE_WEATHER_HISTORY_YEARS", 10),
            attach_climate=_env_bool("HE_ATTACH_CLIMATE", True),
            authoritative_sources=_env_list("HE_AUTHORITATIVE_SOURCES", ("rentcast",)),
            sufficient_fields=_env_list(
                "HE_SUFFICIENT_FIELDS", ("year_built", "square_footage")
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def reset_settings_cache() -> None:
    """Test helper to force env re-read."""

    get_settings.cache_clear()
