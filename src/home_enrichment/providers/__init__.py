from .base import ClimateProvider, HttpProvider, PropertyProvider
from .census import CensusGeocoderProvider
from .climate_estimate import ClimateEstimateProvider
from .nominatim import NominatimProvider
from .rentcast import RentCastProvider
from .visual_crossing import VisualCrossingProvider

__all__ = [
    "CensusGeocoderProvider",
    "ClimateEstimateProvider",
    "ClimateProvider",
    "HttpProvider",
    "NominatimProvider",
    "PropertyProvider",
    "RentCastProvider",
    "VisualCrossingProvider",
]
