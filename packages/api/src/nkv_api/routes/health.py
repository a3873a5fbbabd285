"""Health check endpoints.

- /health/live - Liveness probe (is the process alive?)
- /health/ready - Readiness probe (is the database reachable?)
- /health - Combined status
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from nkv_api import schemas, service

router = APIRouter()


@router.get("/health/live")
async def liveness() -> dict:
    """Liveness probe - returns 200 while the process runs."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness() -> JSONResponse:
    """Readiness probe - 200 only when the database answers."""
    ready = await service.check_database()
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready"},
    )


@router.get("/health", response_model=schemas.HealthCheck)
async def health_check() -> schemas.HealthCheck:
    """Primary health check with a database ping."""
    connected = await service.check_database()
    return schemas.HealthCheck(
        status="healthy" if connected else "degraded",
        version="1.0.0",
        database="connected" if connected else "disconnected",
    )
