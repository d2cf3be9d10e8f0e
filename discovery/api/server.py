"""
ChronoSphere Discovery: HTTP Surface
====================================

Thin FastAPI layer over the discovery engine. Handlers translate JSON to
engine calls and back; no analysis logic lives here.

Endpoints:
- GET  /health                   -> Service status
- POST /api/discover             -> Run one discovery pass
- GET  /api/status               -> Engine status (providers, detectors, batches, cache)
- GET  /api/providers            -> Provider registry
- POST /api/providers/{name}     -> Switch active provider
- GET  /api/discoveries/recent   -> Retained batches, newest first
- POST /api/wikidata/query       -> Events with seven-dimension enrichment
- GET  /api/events/{id}          -> One event by Wikidata id
- GET  /api/events/{id}/related  -> Events close in time to one event
- POST /api/events/nearby        -> Events within a radius of a point
- GET  /api/chronoforge/params   -> Default discovery parameters
- POST /api/chronoforge/params   -> Update default discovery parameters
- POST /api/akasha/query         -> Query preserved discoveries

Usage:
    uvicorn discovery.api.server:app
"""

from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from preservation.akasha import AkashaKnowledgeStore
from preservation.contracts import PreservationFilter
from preservation.sync import PeriodicTask
from sources.contracts import EventSourceError
from ..config import ChronosphereConfig
from ..engine import DiscoveryEngine
from .schemas import (
    DiscoverRequest,
    EventQueryRequest,
    NearbyRequest,
    ParametersUpdate,
    PreservationQueryRequest,
)

logger = logging.getLogger(__name__)


def create_app(
    engine: Optional[DiscoveryEngine] = None,
    config: Optional[ChronosphereConfig] = None
) -> FastAPI:
    """
    Build the application.

    Without an engine, one is built from config (or the environment) at
    startup and closed at shutdown. An injected engine is left open.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = engine is None
        settings = config or (ChronosphereConfig.from_env() if owned else ChronosphereConfig())
        current = engine or DiscoveryEngine.from_config(settings)
        app.state.engine = current

        sync_task = None
        if isinstance(current.store, AkashaKnowledgeStore):
            sync_task = PeriodicTask(
                current.store.sync_pending,
                interval_seconds=settings.preservation.sync_interval_seconds,
                name="akasha-sync",
            )
            sync_task.start()
        logger.info("Discovery engine ready (provider: %s)", current.gateway.active_provider)

        yield

        if sync_task is not None:
            await sync_task.stop()
        if owned:
            await current.aclose()
        else:
            await current.wait_for_persistence()
        logger.info("Discovery engine shut down")

    app = FastAPI(
        title="ChronoSphere Discovery API",
        version="0.1.0",
        description="Pattern discovery over historical events",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/health")
    async def health_check(current: DiscoveryEngine = Depends(_engine)):
        status = current.get_status()
        preservation = status.get("preservation")
        if preservation is None:
            akasha = "disabled"
        else:
            akasha = "active" if preservation.get("connected") else "local"
        return {
            "status": "healthy",
            "services": {
                "akasha": akasha,
                "ai": status["ai"],
                "discovery": "active" if status["ready"] else "initializing",
            },
        }

    @app.post("/api/discover")
    async def discover(body: DiscoverRequest, current: DiscoveryEngine = Depends(_engine)):
        batch = await current.discover(body.parameters(current.default_parameters), body.time_range())
        return batch.to_dict()

    @app.get("/api/status")
    async def get_status(current: DiscoveryEngine = Depends(_engine)):
        return current.get_status()

    @app.get("/api/providers")
    async def get_providers(current: DiscoveryEngine = Depends(_engine)):
        return {
            "providers": {
                name: s.to_dict() for name, s in current.gateway.get_provider_status().items()
            },
            "active": current.gateway.active_provider,
        }

    @app.post("/api/providers/{name}")
    async def switch_provider(name: str, current: DiscoveryEngine = Depends(_engine)):
        success = current.gateway.switch_provider(name)
        return {"success": success, "provider": current.gateway.active_provider}

    @app.get("/api/discoveries/recent")
    async def recent_discoveries(current: DiscoveryEngine = Depends(_engine)):
        batches = current.recent_batches()
        return {"batches": [b.to_dict() for b in reversed(batches)]}

    @app.post("/api/akasha/query")
    async def query_preserved(
        body: PreservationQueryRequest,
        current: DiscoveryEngine = Depends(_engine)
    ):
        if current.store is None:
            raise HTTPException(status_code=503, detail="Preservation is disabled")
        results = await current.store.query(PreservationFilter(
            type=body.type,
            min_confidence=body.min_confidence,
            query=body.query,
            limit=body.limit,
        ))
        return {"results": results}

    @app.post("/api/wikidata/query")
    async def query_events(body: EventQueryRequest, current: DiscoveryEngine = Depends(_engine)):
        return await current.enriched_events(
            body.parameters(current.default_parameters), body.time_range()
        )

    @app.get("/api/events/{event_id}")
    async def get_event(event_id: str, current: DiscoveryEngine = Depends(_engine)):
        event = await _lookup(current.source.get_event(event_id))
        if event is None:
            raise HTTPException(status_code=404, detail=f"Unknown event {event_id}")
        return event.to_dict()

    @app.get("/api/events/{event_id}/related")
    async def related_events(
        event_id: str,
        radius: int = Query(100, gt=0),
        current: DiscoveryEngine = Depends(_engine)
    ):
        events = await _lookup(current.source.query_related(event_id, radius))
        return {"events": [e.to_dict() for e in events], "total": len(events)}

    @app.post("/api/events/nearby")
    async def nearby_events(body: NearbyRequest, current: DiscoveryEngine = Depends(_engine)):
        events = await _lookup(current.source.query_nearby(
            body.center(), body.radius_km, body.start_year, body.end_year, body.limit
        ))
        return {"events": [e.to_dict() for e in events], "total": len(events)}

    @app.get("/api/chronoforge/params")
    async def get_parameters(current: DiscoveryEngine = Depends(_engine)):
        return {"parameters": current.default_parameters.to_dict()}

    @app.post("/api/chronoforge/params")
    async def update_parameters(body: ParametersUpdate, current: DiscoveryEngine = Depends(_engine)):
        updated = current.update_parameters(
            body.parameters.model_dump(by_alias=True, exclude_none=True)
        )
        return {"success": True, "parameters": updated.to_dict()}

    return app


async def _lookup(awaitable):
    """Await a source lookup; source failures become 502."""
    try:
        return await awaitable
    except EventSourceError as e:
        logger.warning("Event lookup failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e


def _engine(request: Request) -> DiscoveryEngine:
    current = getattr(request.app.state, "engine", None)
    if current is None:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return current


app = create_app()
