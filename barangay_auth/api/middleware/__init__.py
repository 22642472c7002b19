# =============================================================================
# MIDDLEWARE MODULE INITIALIZATION
# =============================================================================
# File: api/middleware/__init__.py
# Description: Middleware module exports
# =============================================================================

from barangay_auth.api.middleware.http_middleware import (
    RequestIDMiddleware,
    LoggingMiddleware,
    SecurityHeadersMiddleware,
)
from barangay_auth.api.middleware.audit_trail import (
    audit_trail,
    write_audit_entry,
)

__all__ = [
    "RequestIDMiddleware",
    "LoggingMiddleware",
    "SecurityHeadersMiddleware",
    "audit_trail",
    "write_audit_entry",
]
