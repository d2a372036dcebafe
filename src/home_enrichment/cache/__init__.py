from .store import (
    CacheEntry,
    CacheStats,
    ClimateCache,
    LookupCache,
    PropertyCache,
    get_cached_property_data,
    get_cached_zip_data,
    set_cached_property_data,
    set_cached_zip_data,
)

__all__ = [
    "CacheEntry",
    "CacheStats",
    "ClimateCache",
    "LookupCache",
    "PropertyCache",
    "get_cached_property_data",
    "get_cached_zip_data",
    "set_cached_property_data",
    "set_cached_zip_data",
]
