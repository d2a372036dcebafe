from __future__ import annotations

from typing import List

from ..schema import ClimateProfile
from .storm import HIGH, SEVERE


HEAVY_RAINFALL_IN = 45
HEAVY_SNOWFALL_IN = 40


def climate_recommendations(profile: ClimateProfile) -> List[str]:
    """Maintenance suggestions driven by the ZIP-level climate profile."""

    out: List[str] = []
    if profile.storm_frequency in (HIGH, SEVERE):
        out.append("High storm risk area - consider quarterly roof inspections")
        out.append("Clean gutters monthly during storm season")
    if profile.hurricane_risk:
        out.append("Hurricane-prone area - ensure the roof is wind-rated and properly secured")
        out.append("Prepare storm shutters and emergency supplies")
    if profile.tornado_risk:
        out.append("Tornado-prone area - keep a safe room or basement prepared")
    if profile.average_rainfall is not None and profile.average_rainfall > HEAVY_RAINFALL_IN:
        out.append("High rainfall area - more frequent gutter maintenance needed")
    if profile.average_snowfall is not None and profile.average_snowfall > HEAVY_SNOWFALL_IN:
        out.append("Heavy snowfall area - inspect the roof for snow load more often")
        out.append("Check insulation and service the heating system before winter")
    return out
