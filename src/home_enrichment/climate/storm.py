from __future__ import annotations

from typing import Optional


LOW = "low"
MODERATE = "moderate"
HIGH = "high"
SEVERE = "severe"

_TORNADO_ALLEY = frozenset({"TX", "OK", "KS", "NE", "IA", "MO"})
_HIGH_RISK = frozenset(
    {"FL", "LA", "AL", "MS", "GA", "SC", "NC", "AR", "TN", "KY", "IL", "IN", "OH"}
) | _TORNADO_ALLEY
_MODERATE_RISK = frozenset(
    {"CA", "NY", "NJ", "PA", "VA", "MD", "DE", "CT", "MA", "RI", "NH", "ME", "VT"}
)


def storm_frequency_from_weather(
    *,
    hurricane_events: int = 0,
    tornado_events: int = 0,
    hail_events: int = 0,
    storm_days_per_year: float = 0.0,
    wind_speed_max: float = 0.0,
) -> str:
    """Tier observed storm activity into low/moderate/high/severe."""

    if hurricane_events >= 2 or (hurricane_events >= 1 and storm_days_per_year > 60):
        return SEVERE
    if (
        tornado_events >= 3
        or storm_days_per_year > 50
        or (tornado_events >= 1 and storm_days_per_year > 40)
        or (hurricane_events >= 1 and storm_days_per_year > 30)
    ):
        return HIGH
    if storm_days_per_year > 30 or tornado_events >= 1 or hail_events >= 5 or wind_speed_max > 60:
        return MODERATE
    return LOW


def estimate_storm_frequency(state: Optional[str]) -> str:
    st = (state or "").upper()
    if st in ("FL", "LA"):
        return SEVERE
    if st in _HIGH_RISK:
        return HIGH
    if st in _MODERATE_RISK:
        return MODERATE
    return LOW
