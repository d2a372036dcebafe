from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from home_enrichment.cache import ClimateCache, PropertyCache
from home_enrichment.config import reset_settings_cache
from home_enrichment.orchestrator import (
    EnrichmentOrchestrator,
    SufficiencyPolicy,
    get_orchestrator,
    reset_orchestrator,
)
from home_enrichment.schema import ProviderResult


T0 = datetime(2024, 6, 1, tzinfo=timezone.utc)


class Clock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now


class FakeProperty:
    def __init__(self, name, data=None, *, configured=True, exc=None, delay=None):
        self.name = name
        self.data = data
        self._configured = configured
        self.exc = exc
        self.delay = delay
        self.calls = []

    @property
    def configured(self):
        return self._configured

    async def lookup_by_address(self, query):
        self.calls.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc:
            raise self.exc
        if self.data is None:
            return ProviderResult.miss()
        return ProviderResult.hit(self.data, self.name)


class FakeClimate:
    def __init__(self, name, data=None, *, exc=None):
        self.name = name
        self.data = data
        self.exc = exc
        self.calls = []
        self.configured = True

    async def lookup_by_zip(self, zip_code, state=None):
        self.calls.append((zip_code, state))
        if self.exc:
            raise self.exc
        if self.data is None:
            return ProviderResult.miss()
        return ProviderResult.hit(self.data, self.name)


def make(prop, climate=(), *, clock=None, policy=None, attach_climate=False, timeout=1.0):
    clock = clock or Clock()
    return EnrichmentOrchestrator(
        PropertyCache(":memory:", now_fn=clock),
        ClimateCache(":memory:", now_fn=clock),
        prop,
        climate,
        policy=policy,
        provider_timeout_s=timeout,
        attach_climate=attach_climate,
        now_fn=clock,
    )


SF = ("1 Dr Carlton B Goodlett Pl", "San Francisco", "CA", "94102")


def test_census_fills_in_when_rentcast_has_no_record():
    rentcast = FakeProperty("rentcast", None)
    census = FakeProperty(
        "census",
        {"latitude": 37.7793, "longitude": -122.4193, "county": "San Francisco County", "census_tract": "017601"},
    )
    nominatim = FakeProperty("nominatim", {"latitude": 1.0, "formatted_address": "1 Dr Carlton B Goodlett Pl"})
    orch = make([rentcast, census, nominatim])

    profile = asyncio.run(orch.enrich(*SF))

    assert profile.found is True
    assert profile.sources == ["census", "nominatim"]
    assert "rentcast" not in profile.sources
    assert profile.latitude == 37.7793
    assert profile.formatted_address == "1 Dr Carlton B Goodlett Pl"
    assert profile.market_value is None
    assert profile.tax_amount is None
    assert "market_value" not in profile.to_dict()


def test_first_writer_wins_across_providers():
    rentcast = FakeProperty("rentcast", {"year_built": 1985, "latitude": 10.0})
    census = FakeProperty("census", {"year_built": 1990, "latitude": 20.0, "county": "Orange"})
    orch = make([rentcast, census], policy=SufficiencyPolicy(required_fields=("square_footage",)))

    profile = asyncio.run(orch.enrich("1 Main St", "Orlando", "FL", "32801"))

    assert profile.year_built == 1985
    assert profile.latitude == 10.0
    assert profile.county == "Orange"
    assert profile.sources == ["rentcast", "census"]


def test_sufficient_authoritative_hit_short_circuits():
    rentcast = FakeProperty("rentcast", {"year_built": 1985, "square_footage": 1800})
    census = FakeProperty("census", {"county": "Orange"})
    orch = make([rentcast, census])

    profile = asyncio.run(orch.enrich("1 Main St", "Orlando", "FL", "32801"))

    assert profile.sources == ["rentcast"]
    assert census.calls == []


def test_insufficient_authoritative_hit_keeps_going():
    rentcast = FakeProperty("rentcast", {"year_built": 1985})
    census = FakeProperty("census", {"county": "Orange"})
    orch = make([rentcast, census])

    profile = asyncio.run(orch.enrich("1 Main St", "Orlando", "FL", "32801"))

    assert profile.sources == ["rentcast", "census"]
    assert len(census.calls) == 1


def test_non_authoritative_hit_never_short_circuits():
    census = FakeProperty("census", {"year_built": 1985, "square_footage": 1800})
    nominatim = FakeProperty("nominatim", {"latitude": 28.5})
    orch = make([census, nominatim])

    asyncio.run(orch.enrich("1 Main St", "Orlando", "FL", "32801"))

    assert len(nominatim.calls) == 1


def test_second_lookup_within_ttl_makes_no_provider_calls():
    rentcast = FakeProperty("rentcast", {"year_built": 1985, "square_footage": 1800, "lot_size": 0.2})
    orch = make([rentcast])

    first = asyncio.run(orch.enrich("123 Main St", "Springfield", "IL", "62701"))
    second = asyncio.run(orch.enrich("123  MAIN st", "springfield", "il", "62701-0001"))

    assert len(rentcast.calls) == 1
    assert second.to_dict() == first.to_dict()
    assert second.found is True


def test_expired_entry_is_refetched():
    clock = Clock()
    rentcast = FakeProperty("rentcast", {"year_built": 1985, "square_footage": 1800})
    orch = make([rentcast], clock=clock)

    asyncio.run(orch.enrich(*SF))
    clock.now = T0 + timedelta(days=31)
    asyncio.run(orch.enrich(*SF))

    assert len(rentcast.calls) == 2


def test_all_misses_returns_not_found_and_writes_nothing():
    providers = [FakeProperty("rentcast"), FakeProperty("census"), FakeProperty("nominatim")]
    orch = make(providers)

    profile = asyncio.run(orch.enrich(*SF))

    assert profile.found is False
    assert profile.sources == []
    assert profile.to_dict() == {"sources": [], "found": False}
    assert orch.property_cache.stats().total == 0

    # Not-found results are not cached, so the chain runs again.
    asyncio.run(orch.enrich(*SF))
    assert all(len(p.calls) == 2 for p in providers)


def test_unconfigured_provider_is_skipped():
    rentcast = FakeProperty("rentcast", {"year_built": 1985}, configured=False)
    census = FakeProperty("census", {"county": "Orange"})
    orch = make([rentcast, census])

    profile = asyncio.run(orch.enrich("1 Main St", "Orlando", "FL", "32801"))

    assert rentcast.calls == []
    assert profile.sources == ["census"]


def test_provider_exception_is_a_miss(caplog):
    rentcast = FakeProperty("rentcast", exc=RuntimeError("boom"))
    census = FakeProperty("census", {"county": "Orange"})
    orch = make([rentcast, census])

    with caplog.at_level(logging.WARNING, logger="he.orchestrator"):
        profile = asyncio.run(orch.enrich("1 Main St", "Orlando", "FL", "32801"))

    assert profile.sources == ["census"]
    assert any("rentcast" in r.getMessage() for r in caplog.records)


def test_provider_timeout_is_a_miss():
    slow = FakeProperty("rentcast", {"year_built": 1985}, delay=1.0)
    census = FakeProperty("census", {"county": "Orange"})
    orch = make([slow, census], timeout=0.05)

    profile = asyncio.run(orch.enrich("1 Main St", "Orlando", "FL", "32801"))

    assert profile.sources == ["census"]
    assert profile.year_built is None


def test_cache_write_failure_still_returns_result(monkeypatch):
    census = FakeProperty("census", {"county": "Orange"})
    orch = make([census])

    def broken_put(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(orch.property_cache, "put", broken_put)
    profile = asyncio.run(orch.enrich("1 Main St", "Orlando", "FL", "32801"))

    assert profile.found is True
    assert profile.county == "Orange"


def test_cache_read_failure_is_a_miss(monkeypatch):
    census = FakeProperty("census", {"county": "Orange"})
    orch = make([census])

    def broken_get(*args, **kwargs):
        raise OSError("locked")

    monkeypatch.setattr(orch.property_cache, "get", broken_get)
    profile = asyncio.run(orch.enrich("1 Main St", "Orlando", "FL", "32801"))

    assert profile.found is True
    assert len(census.calls) == 1


def test_cancellation_propagates_and_caches_nothing():
    slow = FakeProperty("rentcast", {"year_built": 1985}, delay=5.0)
    orch = make([slow], timeout=10.0)

    async def run():
        task = asyncio.ensure_future(orch.enrich(*SF))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())
    assert orch.property_cache.stats().total == 0


def test_climate_consults_every_tier():
    weather = FakeClimate("visual-crossing", {"average_rainfall": 23.1, "storm_days_per_year": 4.0})
    estimate = FakeClimate(
        "climate-estimate", {"average_rainfall": 22.0, "wind_zone": "Zone 2 (Moderate wind)", "state": "CA"}
    )
    orch = make([], [weather, estimate])

    climate = asyncio.run(orch.enrich_climate("94102-1234"))

    assert climate.found is True
    assert climate.zip == "94102"
    assert climate.average_rainfall == 23.1
    assert climate.wind_zone == "Zone 2 (Moderate wind)"
    assert climate.sources == ["visual-crossing", "climate-estimate"]
    assert weather.calls == [("94102", None)]

    again = asyncio.run(orch.enrich_climate("94102"))
    assert again.to_dict() == climate.to_dict()
    assert len(weather.calls) == 1


def test_climate_all_misses_is_not_found():
    orch = make([], [FakeClimate("visual-crossing"), FakeClimate("climate-estimate")])
    climate = asyncio.run(orch.enrich_climate("00000"))
    assert climate.found is False
    assert climate.sources == []
    assert orch.climate_cache.stats().total == 0


def test_attach_climate_adds_zip_level_fields():
    census = FakeProperty("census", {"county": "Miami-Dade"})
    estimate = FakeClimate(
        "climate-estimate",
        {"storm_frequency": "severe", "average_rainfall": 54.0, "average_snowfall": 0.0, "wind_zone": "Zone 3"},
    )
    orch = make([census], [estimate], attach_climate=True)

    profile = asyncio.run(orch.enrich("1 Ocean Dr", "Miami", "FL", "33101"))

    assert profile.storm_frequency == "severe"
    assert profile.average_rainfall == 54.0
    assert profile.average_snowfall == 0.0
    assert profile.sources == ["census", "zipcode-climate"]
    assert estimate.calls == [("33101", "FL")]


def test_attach_climate_skipped_when_property_not_found():
    estimate = FakeClimate("climate-estimate", {"storm_frequency": "severe"})
    orch = make([FakeProperty("census")], [estimate], attach_climate=True)

    profile = asyncio.run(orch.enrich("1 Ocean Dr", "Miami", "FL", "33101"))

    assert profile.found is False
    assert profile.sources == []
    assert estimate.calls == []


def test_policy_with_no_required_fields_stops_on_any_authoritative_hit():
    policy = SufficiencyPolicy(authoritative_sources=("census",), required_fields=())
    assert policy.is_sufficient("census", {})
    assert not policy.is_sufficient("nominatim", {"year_built": 1})


def test_non_positive_timeout_rejected():
    with pytest.raises(ValueError):
        make([], timeout=0)


def test_reset_closes_shared_client_and_caches(tmp_path, monkeypatch):
    monkeypatch.setenv("HE_DB_PATH", str(tmp_path / "cache.sqlite"))
    reset_settings_cache()
    orch = get_orchestrator()
    client = orch.client
    assert get_orchestrator() is orch

    reset_orchestrator()

    assert client.is_closed
    assert orch.client is None
    assert orch.property_cache.conn is None
    assert orch.climate_cache.conn is None
    assert get_orchestrator() is not orch


def test_close_inside_running_loop_schedules_client_shutdown():
    async def go():
        client = httpx.AsyncClient()
        orch = EnrichmentOrchestrator(PropertyCache(":memory:"), ClimateCache(":memory:"), [], [], client=client)
        orch.close()
        await asyncio.sleep(0)
        return client

    assert asyncio.run(go()).is_closed
