"""Property and climate enrichment for home records."""

from .orchestrator import (
    EnrichmentOrchestrator,
    SufficiencyPolicy,
    build_orchestrator,
    enrich_climate_data,
    enrich_property_data,
)
from .mapper import map_to_home_schema, normalize_property_type
from .schema import ClimateProfile, EnrichedProfile, HomeFields

__all__ = [
    "ClimateProfile",
    "EnrichedProfile",
    "EnrichmentOrchestrator",
    "HomeFields",
    "SufficiencyPolicy",
    "build_orchestrator",
    "enrich_climate_data",
    "enrich_property_data",
    "map_to_home_schema",
    "normalize_property_type",
]
