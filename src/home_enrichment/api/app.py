from __future__ import annotations

import logging

from fastapi import FastAPI, Request

from home_enrichment.api.routes.lookup import orchestrator_for, router as lookup_router


logger = logging.getLogger("he.api")


def create_app() -> FastAPI:
    """Build the API. ``app.state.orchestrator`` is filled on first use."""

    app = FastAPI(title="home-enrichment")
    app.state.orchestrator = None
    app.include_router(lookup_router, prefix="/api")

    @app.get("/api/health")
    def health_route(request: Request):
        orch = orchestrator_for(request)
        caches = {}
        for name, cache in (
            ("property", orch.property_cache),
            ("climate", orch.climate_cache),
        ):
            try:
                caches[name] = cache.stats().to_dict()
            except Exception as exc:
                logger.warning("cache stats failed for %s: %s", name, exc.__class__.__name__)
                caches[name] = None
        return {"status": "ok", "caches": caches}

    return app


app = create_app()
