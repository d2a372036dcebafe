from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException, Request

from home_enrichment.api.schemas import (
    ClimateLookupRequest,
    ClimateLookupResponse,
    PropertyLookupRequest,
    PropertyLookupResponse,
)
from home_enrichment.climate import climate_recommendations
from home_enrichment.mapper import map_to_home_schema
from home_enrichment.normalize import collapse_whitespace
from home_enrichment.orchestrator import EnrichmentOrchestrator, get_orchestrator


router = APIRouter(tags=["lookup"])


def orchestrator_for(request: Request) -> EnrichmentOrchestrator:
    orch: Optional[EnrichmentOrchestrator] = getattr(request.app.state, "orchestrator", None)
    if orch is None:
        orch = get_orchestrator()
        request.app.state.orchestrator = orch
    return orch


def _profile_body(d: dict) -> dict:
    return {k: v for k, v in d.items() if k not in ("sources", "found")}


@router.post("/property/lookup", response_model=PropertyLookupResponse)
async def lookup_property(payload: PropertyLookupRequest, request: Request):
    missing = [
        name
        for name in ("address", "city", "state", "zipCode")
        if not collapse_whitespace(getattr(payload, name))
    ]
    if missing:
        raise HTTPException(status_code=400, detail=f"missing required fields: {', '.join(missing)}")

    profile = await orchestrator_for(request).enrich(
        payload.address, payload.city, payload.state, payload.zipCode
    )
    if not profile.found:
        return PropertyLookupResponse(found=False, data=None, home={}, sources=[])
    return PropertyLookupResponse(
        found=True,
        data=_profile_body(profile.to_dict()),
        home=map_to_home_schema(profile).to_dict(),
        sources=list(profile.sources),
    )


@router.post("/climate/lookup", response_model=ClimateLookupResponse)
async def lookup_climate(payload: ClimateLookupRequest, request: Request):
    if not collapse_whitespace(payload.zipCode):
        raise HTTPException(status_code=400, detail="zipCode is required")

    profile = await orchestrator_for(request).enrich_climate(payload.zipCode, payload.state)
    if not profile.found:
        return ClimateLookupResponse(found=False, data=None, recommendations=[], sources=[])
    return ClimateLookupResponse(
        found=True,
        data=_profile_body(profile.to_dict()),
        recommendations=climate_recommendations(profile),
        sources=list(profile.sources),
    )
