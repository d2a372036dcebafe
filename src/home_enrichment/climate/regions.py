"""Static ZIP -> state -> climate tables for the estimate tier.

Figures are coarse statewide averages (inches per year). They are a fallback
for when no weather API is configured, not a measurement.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Dict, List, Optional, Tuple


# (first 3-digit prefix, last prefix, state). Prefixes not covered
# (territories, military APO/FPO) resolve to None.
_ZIP3_RANGES: List[Tuple[int, int, str]] = [
    (5, 5, "NY"),
    (10, 27, "MA"),
    (28, 29, "RI"),
    (30, 38, "NH"),
    (39, 49, "ME"),
    (50, 59, "VT"),
    (60, 69, "CT"),
    (70, 89, "NJ"),
    (100, 149, "NY"),
    (150, 196, "PA"),
    (197, 199, "DE"),
    (200, 205, "DC"),
    (206, 219, "MD"),
    (220, 246, "VA"),
    (247, 268, "WV"),
    (270, 289, "NC"),
    (290, 299, "SC"),
    (300, 319, "GA"),
    (320, 349, "FL"),
    (350, 369, "AL"),
    (370, 385, "TN"),
    (386, 397, "MS"),
    (398, 399, "GA"),
    (400, 427, "KY"),
    (430, 459, "OH"),
    (460, 479, "IN"),
    (480, 499, "MI"),
    (500, 528, "IA"),
    (530, 549, "WI"),
    (550, 567, "MN"),
    (569, 569, "DC"),
    (570, 577, "SD"),
    (580, 588, "ND"),
    (590, 599, "MT"),
    (600, 629, "IL"),
    (630, 658, "MO"),
    (660, 679, "KS"),
    (680, 693, "NE"),
    (700, 715, "LA"),
    (716, 729, "AR"),
    (730, 749, "OK"),
    (750, 799, "TX"),
    (800, 816, "CO"),
    (820, 831, "WY"),
    (832, 838, "ID"),
    (840, 847, "UT"),
    (850, 865, "AZ"),
    (870, 884, "NM"),
    (885, 885, "TX"),
    (889, 898, "NV"),
    (900, 961, "CA"),
    (967, 968, "HI"),
    (970, 979, "OR"),
    (980, 994, "WA"),
    (995, 999, "AK"),
]
_RANGE_STARTS = [r[0] for r in _ZIP3_RANGES]


def state_for_zip(zip_code: Optional[str]) -> Optional[str]:
    digits = "".join(ch for ch in (zip_code or "") if ch.isdigit())
    if len(digits) < 3:
        return None
    prefix = int(digits[:3])
    idx = bisect_right(_RANGE_STARTS, prefix) - 1
    if idx < 0:
        return None
    start, end, state = _ZIP3_RANGES[idx]
    if start <= prefix <= end:
        return state
    return None


RAINFALL_IN: Dict[str, float] = {
    "FL": 54, "LA": 60, "AL": 56, "MS": 56, "GA": 50, "SC": 49, "NC": 50,
    "NY": 42, "PA": 42, "NJ": 45, "MA": 47, "CT": 50, "RI": 47,
    "WA": 38, "OR": 28,
    "AZ": 13, "NV": 9, "UT": 15, "NM": 14,
    "IL": 39, "IN": 41, "OH": 39, "MI": 32, "WI": 32, "MN": 27,
    "TX": 28, "OK": 36, "KS": 28, "NE": 23,
    "CO": 17, "WY": 13, "MT": 15, "ID": 18,
    "CA": 22,
}
DEFAULT_RAINFALL_IN = 30.0

SNOWFALL_IN: Dict[str, float] = {
    "ME": 77, "VT": 89, "NH": 71, "NY": 61, "MI": 60, "WI": 46, "MN": 54,
    "CO": 67, "UT": 51, "WY": 47, "MT": 48, "ID": 47,
    "MA": 43, "CT": 37, "PA": 38, "OH": 28, "IN": 25, "IL": 26,
    "FL": 0, "CA": 0, "AZ": 0, "NV": 0, "TX": 2, "LA": 0, "GA": 1, "SC": 1, "NC": 5,
}
DEFAULT_SNOWFALL_IN = 10.0

WIND_ZONES: Dict[str, str] = {
    "FL": "Zone 3 (High wind)",
    "LA": "Zone 3 (High wind)",
    "TX": "Zone 2 (Moderate wind)",
    "CA": "Zone 2 (Moderate wind)",
    "CO": "Zone 2 (Moderate wind)",
    "WY": "Zone 2 (Moderate wind)",
}
DEFAULT_WIND_ZONE = "Zone 1 (Standard)"

HURRICANE_STATES = frozenset({"FL", "LA", "TX", "NC", "SC", "GA", "AL", "MS"})
TORNADO_STATES = frozenset({"TX", "OK", "KS", "NE", "IA", "MO", "AR", "MS", "AL", "TN"})
HAIL_STATES = frozenset({"TX", "OK", "KS", "NE", "CO", "WY"})
