from __future__ import annotations

from typing import Any, Dict

import httpx

from ..normalize import AddressQuery
from ..schema import ProviderResult
from .base import HttpProvider, _as_float, _as_str


NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"


class NominatimProvider(HttpProvider):
    """OpenStreetMap geocoding. Weakest schema: coordinates and a clean address.

    The usage policy requires an identifying User-Agent; one is always sent.
    """

    name = "nominatim"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        enabled: bool = True,
        timeout_s: float = 10.0,
        user_agent: str = "home-enrichment/0.1",
        base_url: str = NOMINATIM_SEARCH_URL,
    ) -> None:
        super().__init__(client, timeout_s=timeout_s, user_agent=user_agent)
        self.enabled = enabled
        self.base_url = base_url

    @property
    def configured(self) -> bool:
        return self.enabled and bool(self.user_agent)

    async def lookup_by_address(self, query: AddressQuery) -> ProviderResult:
        if not self.configured or not query.address:
            return ProviderResult.miss()
        params = {
            "street": query.address,
            "city": query.city,
            "state": query.state,
            "postalcode": query.zip,
            "countrycodes": "us",
            "addressdetails": "1",
            "format": "jsonv2",
            "limit": "1",
        }
        body = await self._get_json(self.base_url, params={k: v for k, v in params.items() if v})
        data = parse_nominatim_result(body)
        if not data:
            return ProviderResult.miss()
        return ProviderResult.hit(data, self.name)


def parse_nominatim_result(body: Any) -> Dict[str, Any]:
    if not isinstance(body, list) or not body or not isinstance(body[0], dict):
        return {}
    item = body[0]
    address = item.get("address") if isinstance(item.get("address"), dict) else {}

    lat = _as_float(item.get("lat"))
    lon = _as_float(item.get("lon"))
    if lat is None or lon is None:
        return {}

    street = " ".join(p for p in (_as_str(address.get("house_number")), _as_str(address.get("road"))) if p)
    city = _as_str(
        address.get("city") or address.get("town") or address.get("village") or address.get("municipality")
    )
    postcode = _as_str(address.get("postcode"))
    formatted = ", ".join(p for p in (street, city, postcode) if p) or _as_str(item.get("display_name"))

    data = {
        "latitude": lat,
        "longitude": lon,
        "county": _as_str(address.get("county")),
        "formatted_address": formatted,
    }
    return {k: v for k, v in data.items() if v is not None}
