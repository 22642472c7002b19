# =============================================================================
# API MODULE INITIALIZATION
# =============================================================================
# File: api/__init__.py
# Description: API module exports
# =============================================================================

from barangay_auth.api.v1 import api_router, health_router
from barangay_auth.api.middleware import (
    SecurityHeadersMiddleware,
    RequestIDMiddleware,
    LoggingMiddleware,
    audit_trail,
)

__all__ = [
    "api_router",
    "health_router",
    "SecurityHeadersMiddleware",
    "RequestIDMiddleware",
    "LoggingMiddleware",
    "audit_trail",
]
