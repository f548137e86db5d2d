"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable or the
      tick driver should be running and is not (readiness)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from
      load balancer
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.infrastructure import database
from app.services.reminder_runtime import ReminderRuntime, get_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "nearby-reminders-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(runtime: ReminderRuntime = Depends(get_runtime)):
    """Readiness probe: database connectivity plus tick driver state."""
    manager = database.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    driver_expected = get_settings().tick_driver_autostart
    if driver_expected and not runtime.driver.is_running:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "tick_driver_stopped",
            },
        )
    return {
        "status": "ready",
        "checks": {
            "database": "healthy",
            "tick_driver": "running" if runtime.driver.is_running else "idle",
        },
    }
