"""Health & Readiness Probes — liveness and readiness endpoints.

Invariants:
    - GET /api/v1/health/ always returns 200 if process is up (liveness)
    - GET /api/v1/health/ready returns 503 until the clock store has been loaded
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

import clk2.services.clock_service as clock_service_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {"status": "healthy", "service": "clk2-server"}


@router.get("/ready")
async def readiness_check():
    """Readiness probe — the store must be loaded."""
    service = clock_service_module.clock_service
    if service is None:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "store_not_loaded"},
        )
    return {"status": "ready", "checks": {"store": "loaded", "clocks": len(service.store)}}
