# =============================================================================
# BARANGAY AUTH SERVICE - HEALTH ROUTES
# =============================================================================
# File: api/v1/health_routes.py
# Description: Health check endpoints for monitoring and orchestration
# =============================================================================

from datetime import datetime, timezone
from typing import Dict, Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from barangay_auth import __version__
from barangay_auth.db.factory import DBFactory
from barangay_auth.core.config import settings


router = APIRouter(tags=["Health"])


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response model."""
    success: bool = True
    status: str = Field(..., description="Overall status: healthy or degraded")
    timestamp: datetime = Field(..., description="Check timestamp")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")


class DetailedHealthResponse(HealthResponse):
    """Health check with component statuses."""
    components: Dict[str, Any] = Field(default_factory=dict)


def _basic(status: str = "healthy") -> HealthResponse:
    return HealthResponse(
        status=status,
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.app_env,
    )


# =============================================================================
# HEALTH ENDPOINTS
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Fast check for load balancers; touches no dependencies."""
    return _basic()


@router.get(
    "/health/live",
    response_model=HealthResponse,
    summary="Liveness check",
)
async def liveness_check() -> HealthResponse:
    return _basic()


@router.get(
    "/health/ready",
    response_model=DetailedHealthResponse,
    summary="Readiness check",
    responses={503: {"model": DetailedHealthResponse}},
)
async def readiness_check():
    """
    Readiness check.

    Pings the database and, when the Redis limiter backend is in use, Redis.
    Answers 503 while any of them is down.
    """
    checks = await DBFactory.health_check()

    components = {
        "database": {
            "status": "healthy" if checks["database"] else "unhealthy",
            "type": settings.resolved_db_type,
        },
    }
    healthy = bool(checks["database"])

    if checks["redis"] is not None:
        components["redis"] = {"status": "healthy" if checks["redis"] else "unhealthy"}
        healthy = healthy and checks["redis"]

    result = DetailedHealthResponse(
        success=healthy,
        status="healthy" if healthy else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=settings.app_env,
        components=components,
    )

    if not healthy:
        return JSONResponse(status_code=503, content=result.model_dump(mode="json"))
    return result
