"""FastAPI application - development collector.

Receives envelopes from faro-lite clients and keeps the most recent ones in
memory so they can be inspected over HTTP. Intended for local development
and end-to-end tests, not for production aggregation.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import CollectorConfig
from .models import AcceptedResponse, EnvelopeModel, EventsResponse, HealthResponse
from .store import EventStore


logger = logging.getLogger(__name__)


def create_app(config: CollectorConfig | None = None, store: EventStore | None = None) -> FastAPI:
    """Create a collector app with its own event store."""
    config = config or CollectorConfig()
    store = store if store is not None else EventStore(max_events=config.max_events)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Collector listening on {config.path} (max_events={config.max_events})")
        yield
        logger.info(f"Collector stopped. Stats: {store.stats}")

    app = FastAPI(
        title="faro-lite collector",
        description="Development collector for faro-lite telemetry envelopes.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.config = config

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Rejected malformed envelope: {exc.errors()}")
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid envelope", "detail": jsonable_encoder(exc.errors())},
        )

    @app.post(config.path, status_code=202, response_model=AcceptedResponse)
    async def collect(envelope: EnvelopeModel):
        """Accept one envelope."""
        store.add(envelope.model_dump(exclude_none=True))
        return AcceptedResponse()

    @app.get("/events", response_model=EventsResponse)
    async def list_events(
        type: str | None = Query(default=None, description="Filter by envelope type"),
        limit: int = Query(default=100, ge=1, le=10000),
    ):
        """Most recent envelopes first."""
        events = store.recent(limit=limit, kind=type)
        return EventsResponse(events=events, count=len(events))

    @app.delete("/events")
    async def clear_events():
        store.clear()
        return {"status": "cleared"}

    @app.get("/stats")
    async def stats():
        return store.stats

    @app.get("/health", response_model=HealthResponse)
    async def health():
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            service=config.service_name,
            version=__version__,
            environment=config.environment,
            store=store.stats,
        )

    @app.get("/")
    async def root():
        """Root endpoint with service info."""
        return {
            "service": config.service_name,
            "version": __version__,
            "environment": config.environment,
            "endpoints": {
                config.path: "POST - Submit one envelope",
                "/events": "GET - Recent envelopes (?type=&limit=), DELETE - clear",
                "/stats": "Envelope counts by type",
                "/health": "Health check",
            },
        }

    return app


app = create_app()


def run(config: CollectorConfig | None = None, log_level: str = "INFO") -> None:
    """Run the collector with uvicorn."""
    import uvicorn

    from ..logging_config import configure_logging

    configure_logging(log_level)
    config = config or CollectorConfig()

    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=log_level.lower(),
    )


if __name__ == "__main__":
    run()
