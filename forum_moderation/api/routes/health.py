"""Health & Readiness Probes: process liveness, database readiness and sweep state.

Invariants:
    - GET /health/ always returns 200 if the process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable (readiness)
    - The expiration sweep is reported but never gates readiness: sanctions still
      read as expired through the store's in-force filter while it is stopped
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

import forum_moderation.infrastructure.database as db_module
import forum_moderation.infrastructure.sweep_scheduler as sweep_module

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


def _sweep_state() -> str:
    task = sweep_module.sweep_task
    if task is None or not task.is_scheduled:
        return "not_scheduled"
    return "running" if task.is_running else "scheduled"


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    return {
        "status": "healthy",
        "service": "forum-moderation",
        "version": request.app.version,
    }


@router.get("/ready")
async def readiness_check():
    manager = db_module.db_manager
    db_ok = await manager.health_check() if manager else False
    if not db_ok:
        logger.warning("Readiness check failed: database unreachable")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
                "checks": {"sweep": _sweep_state()},
            },
        )
    return {
        "status": "ready",
        "checks": {"database": "healthy", "sweep": _sweep_state()},
    }
