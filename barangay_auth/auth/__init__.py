# =============================================================================
# AUTH MODULE INITIALIZATION
# =============================================================================
# File: auth/__init__.py
# Description: Auth module exports
#              Services and dependencies are imported from their own modules;
#              session.manager depends on auth.repository, so this package
#              must not import them eagerly.
# =============================================================================

from barangay_auth.auth.schemas import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    UserProfile,
    MeResponse,
    MessageResponse,
)
from barangay_auth.auth.repository import (
    UserRepository,
    SessionRepository,
    LoginAttemptRepository,
    AuditLogRepository,
)

__all__ = [
    # Schemas
    "RegisterRequest",
    "RegisterResponse",
    "LoginRequest",
    "LoginResponse",
    "RefreshRequest",
    "RefreshResponse",
    "UserProfile",
    "MeResponse",
    "MessageResponse",

    # Repository
    "UserRepository",
    "SessionRepository",
    "LoginAttemptRepository",
    "AuditLogRepository",
]
