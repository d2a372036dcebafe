from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from .cache.store import (
    CacheEntry,
    ClimateCache,
    PropertyCache,
    get_cached_property_data,
    get_cached_zip_data,
    set_cached_property_data,
    set_cached_zip_data,
    utcnow,
)
from .config import Settings, get_settings
from .merge import merge_first_writer_wins
from .normalize import normalize_address_input, normalize_state, property_cache_key, zip_cache_key
from .providers import (
    CensusGeocoderProvider,
    ClimateEstimateProvider,
    ClimateProvider,
    NominatimProvider,
    PropertyProvider,
    RentCastProvider,
    VisualCrossingProvider,
)
from .schema import ClimateProfile, EnrichedProfile, ProviderResult


logger = logging.getLogger("he.orchestrator")

ZIPCODE_CLIMATE_SOURCE = "zipcode-climate"
CLIMATE_ATTACH_FIELDS = ("storm_frequency", "average_rainfall", "average_snowfall")


@dataclass(frozen=True)
class SufficiencyPolicy:
    """When the property chain may stop early.

    The chain stops after a provider named in ``authoritative_sources``
    returned data and every field in ``required_fields`` is populated.
    An empty ``required_fields`` means any authoritative hit is enough.
    """

    authoritative_sources: Sequence[str] = ("rentcast",)
    required_fields: Sequence[str] = ("year_built", "square_footage")

    def is_sufficient(self, source: str, merged: Dict[str, Any]) -> bool:
        if source not in self.authoritative_sources:
            return False
        return all(merged.get(f) is not None for f in self.required_fields)


class EnrichmentOrchestrator:
    """Cache-aside lookup over ordered provider fallback chains."""

    def __init__(
        self,
        property_cache: PropertyCache,
        climate_cache: ClimateCache,
        property_providers: Sequence[PropertyProvider],
        climate_providers: Sequence[ClimateProvider],
        *,
        policy: Optional[SufficiencyPolicy] = None,
        provider_timeout_s: float = 10.0,
        attach_climate: bool = True,
        now_fn: Callable[[], datetime] = utcnow,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if provider_timeout_s <= 0:
            raise ValueError("provider_timeout_s must be positive")
        self.property_cache = property_cache
        self.climate_cache = climate_cache
        self.property_providers = list(property_providers)
        self.climate_providers = list(climate_providers)
        self.policy = policy or SufficiencyPolicy()
        self.provider_timeout_s = float(provider_timeout_s)
        self.attach_climate = attach_climate
        self.now_fn = now_fn
        self.client = client

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()
        self.property_cache.close()
        self.climate_cache.close()

    def close(self) -> None:
        """Synchronous counterpart of ``aclose`` for callers outside an event loop."""

        client, self.client = self.client, None
        self.property_cache.close()
        self.climate_cache.close()
        if client is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(client.aclose())
        else:
            loop.create_task(client.aclose())

    # -- cache helpers ---------------------------------------------------

    def _read_cache(
        self, read: Callable[[], Optional[CacheEntry]], key: str
    ) -> Optional[Dict[str, Any]]:
        try:
            entry = read()
        except Exception as exc:
            logger.warning("cache read failed (%s); treating as miss", exc.__class__.__name__)
            return None
        if entry is None:
            return None
        if not entry.is_fresh(self.now_fn()):
            logger.debug("cache entry expired", extra={"cache_key": key})
            return None
        payload = dict(entry.payload)
        payload["sources"] = list(entry.sources)
        payload["found"] = True
        return payload

    def _write_cache(self, write: Callable[[], None]) -> None:
        try:
            write()
        except Exception as exc:
            logger.warning("cache write failed (%s); returning uncached result", exc.__class__.__name__)

    # -- provider calls --------------------------------------------------

    async def _call(self, name: str, call: Awaitable[ProviderResult]) -> ProviderResult:
        try:
            result = await asyncio.wait_for(call, timeout=self.provider_timeout_s)
        except asyncio.TimeoutError:
            logger.warning("provider %s timed out after %ss", name, self.provider_timeout_s)
            return ProviderResult.miss()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("provider %s failed: %s", name, exc.__class__.__name__)
            return ProviderResult.miss()
        if not isinstance(result, ProviderResult):
            logger.warning("provider %s returned %r; treating as miss", name, type(result).__name__)
            return ProviderResult.miss()
        return result

    # -- property --------------------------------------------------------

    async def enrich(
        self,
        address: Optional[str],
        city: Optional[str],
        state: Optional[str],
        zip_code: Optional[str],
    ) -> EnrichedProfile:
        query = normalize_address_input(address, city, state, zip_code)
        key = property_cache_key(query)

        cached = self._read_cache(lambda: get_cached_property_data(self.property_cache, key), key)
        if cached is not None:
            logger.debug("property cache hit", extra={"cache_key": key})
            return EnrichedProfile.from_dict(cached)

        allowed = EnrichedProfile.attribute_names()
        merged: Dict[str, Any] = {}
        sources: List[str] = []
        for provider in self.property_providers:
            if not provider.configured:
                continue
            result = await self._call(provider.name, provider.lookup_by_address(query))
            if not result.found:
                continue
            merge_first_writer_wins(merged, result.data, allowed)
            source = result.source or provider.name
            if source not in sources:
                sources.append(source)
            if self.policy.is_sufficient(source, merged):
                logger.debug("property chain satisfied by %s", source)
                break

        if not sources:
            logger.info("no provider found property data")
            return EnrichedProfile.not_found()

        if self.attach_climate and query.zip:
            await self._attach_climate(merged, sources, query.zip, query.state)

        self._write_cache(lambda: set_cached_property_data(self.property_cache, key, merged, sources))
        profile = EnrichedProfile.from_dict(merged)
        profile.sources = list(sources)
        profile.found = True
        logger.info("property enriched from %s", ",".join(sources))
        return profile

    async def _attach_climate(
        self, merged: Dict[str, Any], sources: List[str], zip_code: str, state: Optional[str]
    ) -> None:
        climate = await self.enrich_climate(zip_code, state)
        if not climate.found:
            return
        data = {f: getattr(climate, f) for f in CLIMATE_ATTACH_FIELDS}
        if merge_first_writer_wins(merged, data) and ZIPCODE_CLIMATE_SOURCE not in sources:
            sources.append(ZIPCODE_CLIMATE_SOURCE)

    # -- climate ---------------------------------------------------------

    async def enrich_climate(self, zip_code: Optional[str], state: Optional[str] = None) -> ClimateProfile:
        key = zip_cache_key(zip_code)
        if not key:
            return ClimateProfile.not_found()

        cached = self._read_cache(lambda: get_cached_zip_data(self.climate_cache, key), key)
        if cached is not None:
            logger.debug("climate cache hit", extra={"cache_key": key})
            return ClimateProfile.from_dict(cached)

        st = normalize_state(state) if state else None
        allowed = ClimateProfile.attribute_names()
        merged: Dict[str, Any] = {}
        sources: List[str] = []
        for provider in self.climate_providers:
            if not provider.configured:
                continue
            result = await self._call(provider.name, provider.lookup_by_zip(key, st))
            if not result.found:
                continue
            merge_first_writer_wins(merged, result.data, allowed)
            source = result.source or provider.name
            if source not in sources:
                sources.append(source)

        if not sources:
            logger.info("no provider found climate data")
            return ClimateProfile.not_found(key)

        merged["zip"] = key
        self._write_cache(lambda: set_cached_zip_data(self.climate_cache, key, merged, sources))
        profile = ClimateProfile.from_dict(merged)
        profile.sources = list(sources)
        profile.found = True
        return profile


def build_orchestrator(
    settings: Optional[Settings] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
    db_path: Optional[str] = None,
) -> EnrichmentOrchestrator:
    """Wire the production provider chains from settings."""

    s = settings or get_settings()
    path = db_path or s.db_path
    http = client or httpx.AsyncClient(follow_redirects=True)
    common = {"timeout_s": s.provider_timeout_s, "user_agent": s.http_user_agent}

    property_providers: List[PropertyProvider] = [
        RentCastProvider(http, s.rentcast_api_key, **common),
        CensusGeocoderProvider(http, enabled=s.census_enabled, api_key=s.census_api_key, **common),
        NominatimProvider(http, enabled=s.nominatim_enabled, **common),
    ]
    climate_providers: List[ClimateProvider] = [
        VisualCrossingProvider(
            http, s.visual_crossing_api_key, history_years=s.weather_history_years, **common
        ),
        ClimateEstimateProvider(),
    ]

    return EnrichmentOrchestrator(
        PropertyCache(path, ttl=timedelta(days=s.property_cache_ttl_days)),
        ClimateCache(path, ttl=timedelta(days=s.climate_cache_ttl_days)),
        property_providers,
        climate_providers,
        policy=SufficiencyPolicy(
            authoritative_sources=tuple(s.authoritative_sources),
            required_fields=tuple(s.sufficient_fields),
        ),
        # Adapter HTTP timeouts fire first; this bounds the whole adapter call.
        provider_timeout_s=s.provider_timeout_s * 3,
        attach_climate=s.attach_climate,
        client=None if client is not None else http,
    )


_default: Optional[EnrichmentOrchestrator] = None


def get_orchestrator() -> EnrichmentOrchestrator:
    global _default
    if _default is None:
        _default = build_orchestrator()
    return _default


def reset_orchestrator() -> None:
    """Test helper: close and drop the process-wide orchestrator."""

    global _default
    orch, _default = _default, None
    if orch is not None:
        orch.close()


async def enrich_property_data(
    address: Optional[str],
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
) -> EnrichedProfile:
    return await get_orchestrator().enrich(address, city, state, zip_code)


async def enrich_climate_data(zip_code: Optional[str], state: Optional[str] = None) -> ClimateProfile:
    return await get_orchestrator().enrich_climate(zip_code, state)
