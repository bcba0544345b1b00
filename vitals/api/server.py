"""FastAPI server exposing the health report."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vitals import __version__
from vitals.api.health_routes import health_router
from vitals.config import Settings, load_settings
from vitals.health.orchestrator import HealthOrchestrator
from vitals.health.registry import ProbeRegistry, build_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    orchestrator: HealthOrchestrator = app.state.orchestrator
    logger.info(
        "Health endpoint ready: %d probes registered, route=%s",
        len(orchestrator.registry),
        orchestrator.settings.health_route,
    )
    yield


def create_app(
    settings: Settings | None = None,
    registry: ProbeRegistry | None = None,
) -> FastAPI:
    """Create the API application around a single orchestrator."""
    settings = settings or load_settings()
    app = FastAPI(
        title="vitals Health Check Orchestrator",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.orchestrator = HealthOrchestrator(settings, registry or build_registry())
    app.include_router(health_router, prefix=settings.health_route.rstrip("/"))
    return app
