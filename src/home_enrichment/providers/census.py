from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

import httpx

from ..normalize import AddressQuery
from ..schema import ProviderResult
from .base import HttpProvider, _as_float, _as_int, _as_str


CENSUS_GEOCODER_URL = "https://geocoding.geo.census.gov/geocoder/geographies/address"
CENSUS_ACS_URL = "https://api.census.gov/data/{year}/acs/acs5"

# median home value, median household income, total population
ACS_VARIABLES = ("B25077_001E", "B19013_001E", "B01003_001E")


class CensusGeocoderProvider(HttpProvider):
    """US Census geocoder (free, no key) plus ACS tract demographics.

    The geocoder supplies coordinates, county, FIPS code and tract. When a
    tract is known the ACS 5-year API is queried for neighborhood context;
    if that second call fails the geocode data is still returned.
    """

    name = "census"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        enabled: bool = True,
        api_key: Optional[str] = None,
        acs_year: Optional[int] = None,
        timeout_s: float = 10.0,
        user_agent: str = "home-enrichment/0.1",
    ) -> None:
        super().__init__(client, timeout_s=timeout_s, user_agent=user_agent)
        self.enabled = enabled
        self.api_key = api_key
        # ACS 5-year releases trail the calendar by about two years.
        self.acs_year = acs_year or (date.today().year - 2)

    @property
    def configured(self) -> bool:
        return self.enabled

    async def lookup_by_address(self, query: AddressQuery) -> ProviderResult:
        if not self.configured or not query.address:
            return ProviderResult.miss()

        params = {
            "street": query.address,
            "city": query.city,
            "state": query.state,
            "zip": query.zip,
            "benchmark": "Public_AR_Current",
            "vintage": "Current_Current",
            "format": "json",
        }
        body = await self._get_json(CENSUS_GEOCODER_URL, params=params)
        data = parse_geocoder_match(body)
        if not data:
            return ProviderResult.miss()

        state_fips = data.pop("_state_fips", None)
        county_fips = data.pop("_county_fips", None)
        tract = data.get("census_tract")
        if state_fips and county_fips and tract:
            data.update(await self._tract_demographics(state_fips, county_fips, tract))
        return ProviderResult.hit(data, self.name)

    async def _tract_demographics(self, state_fips: str, county_fips: str, tract: str) -> Dict[str, Any]:
        params = {
            "get": ",".join(ACS_VARIABLES),
            "for": f"tract:{tract}",
            "in": f"state:{state_fips} county:{county_fips}",
        }
        if self.api_key:
            params["key"] = self.api_key
        body = await self._get_json(CENSUS_ACS_URL.format(year=self.acs_year), params=params)
        return parse_acs_rows(body)


def _first_geography(geos: Mapping[str, Any], *layer_names: str) -> Mapping[str, Any]:
    for name in layer_names:
        items = geos.get(name)
        if isinstance(items, list) and items and isinstance(items[0], dict):
            return items[0]
    return {}


def parse_geocoder_match(body: Any) -> Dict[str, Any]:
    if not isinstance(body, dict):
        return {}
    result = body.get("result")
    matches = result.get("addressMatches") if isinstance(result, dict) else None
    if not isinstance(matches, list) or not matches or not isinstance(matches[0], dict):
        return {}
    match = matches[0]
    coords = match.get("coordinates")
    if not isinstance(coords, dict):
        coords = {}
    geos = match.get("geographies")
    if not isinstance(geos, dict):
        geos = {}

    tract = _first_geography(geos, "Census Tracts")
    county = _first_geography(geos, "Counties")

    state_fips = _as_str(tract.get("STATE") or county.get("STATE"))
    county_fips = _as_str(tract.get("COUNTY") or county.get("COUNTY"))

    data: Dict[str, Any] = {
        "latitude": _as_float(coords.get("y")),
        "longitude": _as_float(coords.get("x")),
        "formatted_address": _as_str(match.get("matchedAddress")),
        "county": _as_str(county.get("NAME")),
        "census_tract": _as_str(tract.get("TRACT")),
        "fips_code": f"{state_fips}{county_fips}" if state_fips and county_fips else None,
        "_state_fips": state_fips,
        "_county_fips": county_fips,
    }
    return {k: v for k, v in data.items() if v is not None}


def _acs_value(v: Any) -> Optional[int]:
    n = _as_int(v)
    # The ACS encodes "not available" as large negative sentinels.
    if n is None or n < 0:
        return None
    return n


def parse_acs_rows(body: Any) -> Dict[str, Any]:
    """First row is the header, second row the tract values."""

    if not isinstance(body, list) or len(body) < 2:
        return {}
    header: List[Any] = body[0] if isinstance(body[0], list) else []
    row: List[Any] = body[1] if isinstance(body[1], list) else []
    values = dict(zip(header, row))
    data = {
        "median_home_value": _acs_value(values.get("B25077_001E")),
        "median_income": _acs_value(values.get("B19013_001E")),
        "population": _acs_value(values.get("B01003_001E")),
    }
    return {k: v for k, v in data.items() if v is not None}
