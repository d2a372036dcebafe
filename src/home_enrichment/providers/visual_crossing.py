from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import httpx

from ..climate.storm import storm_frequency_from_weather
from ..schema import ProviderResult
from .base import HttpProvider, _as_float, _as_str


VISUAL_CROSSING_TIMELINE_URL = (
    "https://weather.visualcrossing.com/VisualCrossingWebServices/rest/services/timeline"
)

DEGREE_DAY_BASE_F = 65.0
STORM_PRECIP_IN = 0.5


class VisualCrossingProvider(HttpProvider):
    """Commercial weather API: multi-year daily history aggregated per ZIP."""

    name = "visual-crossing"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str],
        *,
        history_years: int = 10,
        timeout_s: float = 10.0,
        user_agent: str = "home-enrichment/0.1",
        base_url: str = VISUAL_CROSSING_TIMELINE_URL,
        today_fn: Callable[[], date] = date.today,
    ) -> None:
        super().__init__(client, timeout_s=timeout_s, user_agent=user_agent)
        self.api_key = api_key
        self.history_years = max(int(history_years), 1)
        self.base_url = base_url.rstrip("/")
        self.today_fn = today_fn

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _date_range(self) -> tuple:
        end = self.today_fn()
        try:
            start = end.replace(year=end.year - self.history_years)
        except ValueError:
            # Feb 29 -> Feb 28
            start = end.replace(year=end.year - self.history_years, day=28)
        return start, end

    async def lookup_by_zip(self, zip_code: str, state: Optional[str] = None) -> ProviderResult:
        if not self.configured or not zip_code:
            return ProviderResult.miss()

        start, end = self._date_range()
        url = f"{self.base_url}/{quote(zip_code)}/{start.isoformat()}/{end.isoformat()}"
        params = {
            "unitGroup": "us",
            "include": "days,current",
            "elements": "datetime,temp,tempmax,tempmin,precip,snow,windspeed,windgust,conditions",
            "contentType": "json",
            "key": self.api_key,
        }
        body = await self._get_json(url, params=params)
        data = parse_timeline(body)
        if not data:
            return ProviderResult.miss()
        data["data_years"] = f"{start.year}-{end.year}"
        return ProviderResult.hit(data, self.name)


def parse_timeline(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        return {}
    raw_days = body.get("days")
    if not isinstance(raw_days, list):
        return {}
    days = [d for d in raw_days if isinstance(d, dict)]
    if not days:
        return {}

    total_precip = 0.0
    total_snow = 0.0
    total_temp = 0.0
    temp_days = 0
    max_temp: Optional[float] = None
    min_temp: Optional[float] = None
    total_wind = 0.0
    wind_days = 0
    max_wind = 0.0
    storm_days = 0
    hurricanes = 0
    tornadoes = 0
    hail = 0
    hdd = 0.0
    cdd = 0.0

    for day in days:
        precip = _as_float(day.get("precip")) or 0.0
        total_precip += precip
        total_snow += _as_float(day.get("snow")) or 0.0

        temp = _as_float(day.get("temp"))
        if temp is not None:
            total_temp += temp
            temp_days += 1
            hdd += max(0.0, DEGREE_DAY_BASE_F - temp)
            cdd += max(0.0, temp - DEGREE_DAY_BASE_F)
        hi = _as_float(day.get("tempmax"))
        lo = _as_float(day.get("tempmin"))
        if hi is not None:
            max_temp = hi if max_temp is None else max(max_temp, hi)
        if lo is not None:
            min_temp = lo if min_temp is None else min(min_temp, lo)

        wind = _as_float(day.get("windspeed"))
        if wind is not None:
            total_wind += wind
            wind_days += 1
            max_wind = max(max_wind, wind)
        gust = _as_float(day.get("windgust"))
        if gust is not None:
            max_wind = max(max_wind, gust)

        conditions = (_as_str(day.get("conditions")) or "").lower()
        if "storm" in conditions or "thunder" in conditions or precip > STORM_PRECIP_IN:
            storm_days += 1
        if "hurricane" in conditions:
            hurricanes += 1
        if "tornado" in conditions:
            tornadoes += 1
        if "hail" in conditions:
            hail += 1

    years = len(days) / 365.25
    storm_days_per_year = round(storm_days / years, 1)

    data: Dict[str, Any] = {
        "average_rainfall": round(total_precip / years, 1),
        "average_snowfall": round(total_snow / years, 1),
        "storm_days_per_year": storm_days_per_year,
        "hurricane_events": hurricanes,
        "tornado_events": tornadoes,
        "hail_events": hail,
        "wind_speed_max": round(max_wind, 1) if wind_days or max_wind else None,
        "max_temperature": max_temp,
        "min_temperature": min_temp,
    }
    if temp_days:
        data["average_temperature"] = round(total_temp / temp_days, 1)
        data["heating_degree_days"] = round(hdd / years)
        data["cooling_degree_days"] = round(cdd / years)
    if wind_days:
        data["wind_speed_average"] = round(total_wind / wind_days, 1)

    data["storm_frequency"] = storm_frequency_from_weather(
        hurricane_events=hurricanes,
        tornado_events=tornadoes,
        hail_events=hail,
        storm_days_per_year=storm_days_per_year,
        wind_speed_max=max_wind,
    )

    current = body.get("currentConditions")
    if isinstance(current, dict):
        data["current_temperature"] = _as_float(current.get("temp"))
        data["current_conditions"] = _as_str(current.get("conditions"))

    return {k: v for k, v in data.items() if v is not None}
