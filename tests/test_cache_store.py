from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from home_enrichment.cache import (
    ClimateCache,
    LookupCache,
    PropertyCache,
    get_cached_property_data,
    get_cached_zip_data,
    set_cached_property_data,
    set_cached_zip_data,
)


T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_put_then_get_round_trips(tmp_path):
    cache = PropertyCache(str(tmp_path / "cache.sqlite"), now_fn=Clock(T0))
    try:
        set_cached_property_data(cache, "k", {"year_built": 1990, "lot_size": 0.25}, ["rentcast"])
        entry = get_cached_property_data(cache, "k")
        assert entry is not None
        assert entry.payload == {"year_built": 1990, "lot_size": 0.25}
        assert entry.sources == ["rentcast"]
        assert entry.expires_at == T0 + timedelta(days=30)
        assert entry.is_fresh(T0 + timedelta(days=29))
        assert not entry.is_fresh(T0 + timedelta(days=30))
    finally:
        cache.close()


def test_missing_key_is_none(tmp_path):
    cache = PropertyCache(str(tmp_path / "cache.sqlite"))
    try:
        assert cache.get("nope") is None
    finally:
        cache.close()


def test_put_replaces_existing_row(tmp_path):
    clock = Clock(T0)
    cache = ClimateCache(str(tmp_path / "cache.sqlite"), now_fn=clock)
    try:
        set_cached_zip_data(cache, "94102", {"average_rainfall": 20.0}, ["climate-estimate"])
        clock.now = T0 + timedelta(days=5)
        set_cached_zip_data(cache, "94102", {"average_rainfall": 23.5}, ["visual-crossing"])
        entry = get_cached_zip_data(cache, "94102")
        assert entry.payload == {"average_rainfall": 23.5}
        assert entry.sources == ["visual-crossing"]
        assert entry.expires_at == T0 + timedelta(days=95)
        assert cache.stats().total == 1
    finally:
        cache.close()


def test_expired_row_is_kept_and_counted(tmp_path):
    clock = Clock(T0)
    cache = PropertyCache(str(tmp_path / "cache.sqlite"), now_fn=clock)
    try:
        cache.put("old", {"year_built": 1950}, ["census"])
        clock.now = T0 + timedelta(days=20)
        cache.put("new", {"year_built": 2000}, ["census"])
        clock.now = T0 + timedelta(days=31)

        stats = cache.stats()
        assert stats.to_dict() == {"total": 2, "expired": 1, "valid": 1}

        # Reading an expired row does not delete it.
        assert cache.get("old") is not None
        assert cache.stats().total == 2
    finally:
        cache.close()


def test_climate_cache_uses_ninety_day_ttl():
    cache = ClimateCache(":memory:", now_fn=Clock(T0))
    try:
        cache.put("33101", {"storm_frequency": "severe"}, ["climate-estimate"])
        assert cache.get("33101").expires_at == T0 + timedelta(days=90)
    finally:
        cache.close()


def test_property_and_climate_tables_share_a_file(tmp_path):
    path = str(tmp_path / "cache.sqlite")
    prop = PropertyCache(path)
    climate = ClimateCache(path)
    try:
        prop.put("94102", {"year_built": 1900}, ["rentcast"])
        assert climate.get("94102") is None
    finally:
        prop.close()
        climate.close()


def test_non_positive_ttl_rejected():
    with pytest.raises(ValueError):
        PropertyCache(":memory:", ttl=timedelta(0))


def test_custom_table_name():
    cache = LookupCache(":memory:", table="geocode_cache")
    try:
        cache.put("k", {"latitude": 1.0}, ["census"])
        row = cache.conn.execute("SELECT COUNT(*) FROM geocode_cache").fetchone()
        assert row[0] == 1
    finally:
        cache.close()
    with pytest.raises(ValueError):
        LookupCache(":memory:", table="bad name; drop")
