from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, FrozenSet, List, Mapping, Optional


def _field_names(cls) -> FrozenSet[str]:
    return frozenset(f.name for f in fields(cls))


def _sparse_dict(obj) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if f.name in ("sources", "found"):
            continue
        if value is None:
            continue
        out[f.name] = list(value) if isinstance(value, list) else value
    out["sources"] = list(obj.sources)
    out["found"] = bool(obj.found)
    return out


def _from_mapping(cls, raw: Optional[Mapping[str, Any]]):
    raw = raw or {}
    allowed = _field_names(cls)
    data = {k: v for k, v in raw.items() if k in allowed}
    data["sources"] = list(data.get("sources") or [])
    data["found"] = bool(data.get("found", bool(data["sources"])))
    return cls(**data)


@dataclass
class EnrichedProfile:
    """Best-effort property profile assembled from several providers.

    Every attribute is optional. ``None`` means no provider had the value;
    it is never replaced by a zero/empty default. ``lot_size`` is in acres.
    """

    # basic
    year_built: Optional[int] = None
    square_footage: Optional[int] = None
    lot_size: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    property_type: Optional[str] = None
    stories: Optional[int] = None
    garage_spaces: Optional[int] = None

    # valuation / ownership
    assessed_value: Optional[float] = None
    market_value: Optional[float] = None
    tax_amount: Optional[float] = None
    tax_year: Optional[int] = None
    owner_name: Optional[str] = None
    last_sale_date: Optional[str] = None
    last_sale_price: Optional[float] = None

    # construction
    construction_type: Optional[str] = None
    roof_type: Optional[str] = None
    foundation_type: Optional[str] = None
    exterior_wall_type: Optional[str] = None
    heating_type: Optional[str] = None
    heating_fuel: Optional[str] = None
    cooling_type: Optional[str] = None
    zoning_code: Optional[str] = None

    # schools / scores
    school_district: Optional[str] = None
    elementary_school: Optional[str] = None
    middle_school: Optional[str] = None
    high_school: Optional[str] = None
    walk_score: Optional[int] = None
    transit_score: Optional[int] = None
    bike_score: Optional[int] = None

    # neighborhood (census tract)
    median_home_value: Optional[int] = None
    median_income: Optional[int] = None
    population: Optional[int] = None

    # geography
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    fips_code: Optional[str] = None
    census_tract: Optional[str] = None
    county: Optional[str] = None
    formatted_address: Optional[str] = None

    # climate (ZIP level)
    storm_frequency: Optional[str] = None
    average_rainfall: Optional[float] = None
    average_snowfall: Optional[float] = None

    # links
    property_image_url: Optional[str] = None
    listing_url: Optional[str] = None
    zillow_url: Optional[str] = None

    sources: List[str] = field(default_factory=list)
    found: bool = False

    @classmethod
    def attribute_names(cls) -> FrozenSet[str]:
        return _field_names(cls) - {"sources", "found"}

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "EnrichedProfile":
        return _from_mapping(cls, raw)

    @classmethod
    def not_found(cls) -> "EnrichedProfile":
        return cls(sources=[], found=False)

    def to_dict(self) -> Dict[str, Any]:
        return _sparse_dict(self)


@dataclass
class ClimateProfile:
    """ZIP-level weather/climate profile. Same sparse semantics as EnrichedProfile."""

    zip: Optional[str] = None
    state: Optional[str] = None

    average_rainfall: Optional[float] = None
    average_snowfall: Optional[float] = None
    average_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    min_temperature: Optional[float] = None
    current_temperature: Optional[float] = None
    current_conditions: Optional[str] = None
    storm_days_per_year: Optional[float] = None
    wind_speed_average: Optional[float] = None
    wind_speed_max: Optional[float] = None
    hurricane_events: Optional[int] = None
    tornado_events: Optional[int] = None
    hail_events: Optional[int] = None
    heating_degree_days: Optional[float] = None
    cooling_degree_days: Optional[float] = None
    data_years: Optional[str] = None

    storm_frequency: Optional[str] = None
    wind_zone: Optional[str] = None
    hurricane_risk: Optional[bool] = None
    tornado_risk: Optional[bool] = None
    hail_risk: Optional[bool] = None

    sources: List[str] = field(default_factory=list)
    found: bool = False

    @classmethod
    def attribute_names(cls) -> FrozenSet[str]:
        return _field_names(cls) - {"sources", "found"}

    @classmethod
    def from_dict(cls, raw: Optional[Mapping[str, Any]]) -> "ClimateProfile":
        return _from_mapping(cls, raw)

    @classmethod
    def not_found(cls, zip_code: Optional[str] = None) -> "ClimateProfile":
        return cls(zip=zip_code or None, sources=[], found=False)

    def to_dict(self) -> Dict[str, Any]:
        return _sparse_dict(self)


@dataclass(frozen=True)
class ProviderResult:
    """Per-adapter outcome: a hit carrying partial data, or a miss."""

    found: bool
    data: Dict[str, Any] = field(default_factory=dict)
    source: Optional[str] = None

    @classmethod
    def hit(cls, data: Mapping[str, Any], source: str) -> "ProviderResult":
        clean = {k: v for k, v in dict(data).items() if v is not None}
        return cls(found=True, data=clean, source=source)

    @classmethod
    def miss(cls) -> "ProviderResult":
        return cls(found=False)


@dataclass(frozen=True)
class HomeFields:
    """Subset of the home record a lookup can pre-fill."""

    year_built: Optional[int] = None
    square_footage: Optional[int] = None
    lot_size: Optional[float] = None
    home_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    stories: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}
