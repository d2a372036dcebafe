from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import httpx

from ..normalize import AddressQuery
from ..schema import ProviderResult
from .base import HttpProvider, _as_float, _as_int, _as_str, _first


RENTCAST_PROPERTIES_URL = "https://api.rentcast.io/v1/properties"

SQFT_PER_ACRE = 43560.0


class RentCastProvider(HttpProvider):
    """Primary commercial property API (paid, rate limited).

    Richest schema: valuation, tax, construction detail, schools.
    """

    name = "rentcast"

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: Optional[str],
        *,
        timeout_s: float = 10.0,
        user_agent: str = "home-enrichment/0.1",
        base_url: str = RENTCAST_PROPERTIES_URL,
    ) -> None:
        super().__init__(client, timeout_s=timeout_s, user_agent=user_agent)
        self.api_key = api_key
        self.base_url = base_url

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def address_formats(self, query: AddressQuery) -> List[str]:
        out: List[str] = []
        for candidate in (
            query.one_line(include_zip=True),
            query.one_line(include_zip=False),
            query.address,
        ):
            if candidate and candidate not in out:
                out.append(candidate)
        return out

    async def lookup_by_address(self, query: AddressQuery) -> ProviderResult:
        if not self.configured:
            return ProviderResult.miss()

        headers = {"X-Api-Key": str(self.api_key)}
        body: Any = None
        for candidate in self.address_formats(query):
            status, body = await self._fetch_json(
                self.base_url, params={"address": candidate}, headers=headers
            )
            # Only a 404 means "try a looser address"; anything else is final.
            if status != 404:
                break

        record = _first_record(body)
        if record is None:
            return ProviderResult.miss()
        data = parse_rentcast_property(record)
        self.log.debug("rentcast mapped %d fields", len(data))
        return ProviderResult.hit(data, self.name)


def _coalesce(*values: Any) -> Any:
    """First value that is not None; 0 counts as a value."""

    for v in values:
        if v is not None:
            return v
    return None


def _first_record(body: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(body, list):
        body = body[0] if body else None
    if isinstance(body, dict) and body:
        return body
    return None


def _latest_tax(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """RentCast nests taxes by year: {"2023": {"year": 2023, "total": 4500}}."""

    taxes = raw.get("propertyTaxes")
    if not isinstance(taxes, dict) or not taxes:
        return {}
    try:
        latest = max(taxes.keys(), key=lambda y: int(str(y)))
    except ValueError:
        return {}
    entry = taxes.get(latest)
    if not isinstance(entry, dict):
        return {}
    year = _as_int(entry.get("year"))
    return {"tax_amount": _as_float(entry.get("total")), "tax_year": _as_int(latest) if year is None else year}


def _latest_assessment(raw: Mapping[str, Any]) -> Optional[float]:
    assessments = raw.get("taxAssessments")
    if not isinstance(assessments, dict) or not assessments:
        return None
    try:
        latest = max(assessments.keys(), key=lambda y: int(str(y)))
    except ValueError:
        return None
    entry = assessments.get(latest)
    if not isinstance(entry, dict):
        return None
    return _as_float(entry.get("value"))


def parse_rentcast_property(raw: Mapping[str, Any]) -> Dict[str, Any]:
    features = raw.get("features") if isinstance(raw.get("features"), dict) else {}
    owner = raw.get("owner") if isinstance(raw.get("owner"), dict) else {}
    owner_names = owner.get("names") if isinstance(owner.get("names"), list) else []

    data: Dict[str, Any] = {
        "year_built": _as_int(raw.get("yearBuilt")),
        "square_footage": _as_int(_first(raw, "squareFootage", "livingArea")),
        "bedrooms": _as_int(raw.get("bedrooms")),
        "bathrooms": _as_float(raw.get("bathrooms")),
        "property_type": _as_str(_first(raw, "propertyType", "homeType")),
        "stories": _coalesce(_as_int(_first(raw, "stories", "floorCount")), _as_int(features.get("floorCount"))),
        "garage_spaces": _coalesce(_as_int(raw.get("garageSpaces")), _as_int(features.get("garageSpaces"))),
        "assessed_value": _coalesce(_as_float(raw.get("assessedValue")), _latest_assessment(raw)),
        "market_value": _as_float(_first(raw, "marketValue", "estimatedValue")),
        "tax_amount": _as_float(_first(raw, "taxAmount", "annualTaxAmount")),
        "tax_year": _as_int(raw.get("taxYear")),
        "owner_name": _as_str(raw.get("ownerName"))
        or _as_str("; ".join(str(n) for n in owner_names if n)),
        "last_sale_date": _as_str(raw.get("lastSaleDate")),
        "last_sale_price": _as_float(raw.get("lastSalePrice")),
        "construction_type": _as_str(raw.get("constructionType")) or _as_str(features.get("architectureType")),
        "roof_type": _as_str(raw.get("roofType")) or _as_str(features.get("roofType")),
        "foundation_type": _as_str(raw.get("foundationType")) or _as_str(features.get("foundationType")),
        "exterior_wall_type": _as_str(_first(raw, "exteriorWallType", "exteriorMaterial"))
        or _as_str(features.get("exteriorType")),
        "heating_type": _as_str(_first(raw, "heatingType", "heating")) or _as_str(features.get("heatingType")),
        "heating_fuel": _as_str(_first(raw, "heatingFuel", "heatingFuelType")),
        "cooling_type": _as_str(_first(raw, "coolingType", "cooling")) or _as_str(features.get("coolingType")),
        "zoning_code": _as_str(_first(raw, "zoningCode", "zoning")),
        "school_district": _as_str(raw.get("schoolDistrict")),
        "elementary_school": _as_str(raw.get("elementarySchool")),
        "middle_school": _as_str(raw.get("middleSchool")),
        "high_school": _as_str(raw.get("highSchool")),
        "walk_score": _as_int(raw.get("walkScore")),
        "transit_score": _as_int(raw.get("transitScore")),
        "bike_score": _as_int(raw.get("bikeScore")),
        "latitude": _as_float(raw.get("latitude")),
        "longitude": _as_float(raw.get("longitude")),
        "county": _as_str(raw.get("county")),
        "formatted_address": _as_str(raw.get("formattedAddress")),
        "property_image_url": _as_str(_first(raw, "imageUrl", "photoUrl", "image")),
        "listing_url": _as_str(raw.get("listingUrl")),
        "zillow_url": _as_str(raw.get("zillowUrl")),
    }

    # lotSize is documented in square feet.
    lot_sqft = _as_float(raw.get("lotSize"))
    if lot_sqft is not None:
        data["lot_size"] = round(lot_sqft / SQFT_PER_ACRE, 4)

    if data["tax_amount"] is None:
        data.update({k: v for k, v in _latest_tax(raw).items() if data.get(k) is None})

    zpid = _as_str(raw.get("zpid"))
    if zpid and not data["zillow_url"]:
        data["zillow_url"] = f"https://www.zillow.com/homedetails/{zpid}_zpid/"

    return {k: v for k, v in data.items() if v is not None}
