"""API routes for the health orchestrator.

Endpoints (relative to the configured health route, default ``/health``):
  GET  /health          run all enabled checks; 200 when healthy, 500 otherwise
  GET  /health/checks   list probe names and their enabled flags
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from vitals.health.formatter import to_machine_readable
from vitals.health.selector import enabled_flags

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("")
def run_health_checks(request: Request) -> JSONResponse:
    """Run the orchestrator once and return the machine-readable report."""
    orchestrator = request.app.state.orchestrator
    report = orchestrator.run()
    status_code = 200 if report.is_healthy else 500
    if status_code != 200:
        logger.info("Health endpoint returning %d", status_code)
    return JSONResponse(content=to_machine_readable(report), status_code=status_code)


@health_router.get("/checks")
def list_checks(request: Request) -> dict[str, Any]:
    """Describe what is registered and what the configuration enables."""
    orchestrator = request.app.state.orchestrator
    return {
        "registered": orchestrator.registry.names(),
        "enabled": enabled_flags(orchestrator.settings),
    }
