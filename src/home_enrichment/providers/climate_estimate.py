from __future__ import annotations

from typing import Optional

from ..climate import regions
from ..climate.storm import estimate_storm_frequency
from ..normalize import normalize_state
from ..schema import ProviderResult


class ClimateEstimateProvider:
    """Offline climate estimate keyed by ZIP prefix -> state.

    Always configured, never touches the network. Unknown prefixes
    (territories, military addresses) are a miss.
    """

    name = "climate-estimate"

    @property
    def configured(self) -> bool:
        return True

    async def lookup_by_zip(self, zip_code: str, state: Optional[str] = None) -> ProviderResult:
        st = regions.state_for_zip(zip_code) or (normalize_state(state) if state else None)
        if not st or len(st) != 2:
            return ProviderResult.miss()
        data = {
            "state": st,
            "average_rainfall": float(regions.RAINFALL_IN.get(st, regions.DEFAULT_RAINFALL_IN)),
            "average_snowfall": float(regions.SNOWFALL_IN.get(st, regions.DEFAULT_SNOWFALL_IN)),
            "wind_zone": regions.WIND_ZONES.get(st, regions.DEFAULT_WIND_ZONE),
            "hurricane_risk": st in regions.HURRICANE_STATES,
            "tornado_risk": st in regions.TORNADO_STATES,
            "hail_risk": st in regions.HAIL_STATES,
            "storm_frequency": estimate_storm_frequency(st),
        }
        return ProviderResult.hit(data, self.name)
