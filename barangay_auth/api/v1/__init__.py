# =============================================================================
# API V1 MODULE INITIALIZATION
# =============================================================================
# File: api/v1/__init__.py
# Description: API router aggregation
# =============================================================================

from fastapi import APIRouter

from barangay_auth.api.v1.auth_routes import router as auth_router
from barangay_auth.api.v1.admin_routes import router as admin_router
from barangay_auth.api.v1.health_routes import router as health_router


# Main API router
api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router)
api_router.include_router(admin_router)


__all__ = [
    "api_router",
    "auth_router",
    "admin_router",
    "health_router",
]
