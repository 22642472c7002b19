# =============================================================================
# CORE MODULE INITIALIZATION
# =============================================================================
# File: core/__init__.py
# Description: Core module exports for centralized access
# =============================================================================

from barangay_auth.core.config import settings, get_settings, Settings
from barangay_auth.core.exceptions import (
    # Base
    AuthSystemException,

    # Validation
    ValidationError,
    MissingFieldError,
    ConsentRequiredError,
    PasswordValidationError,

    # Authentication
    AuthenticationError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    TokenMissingError,
    SessionRevokedError,

    # Authorization / account state
    AuthorizationError,
    InsufficientPermissionsError,
    AccountPendingError,
    AccountRejectedError,
    AccountInactiveError,

    # Resources
    NotFoundError,
    ConflictError,
    InvalidStatusTransitionError,

    # Rate Limiting
    RateLimitExceeded,

    # Internal
    InternalError,
    RedisConnectionError,
)
from barangay_auth.core.security import (
    PasswordManager,
    JWTManager,
    PasswordValidator,
    TokenPayload,
    password_manager,
    jwt_manager,
    password_validator,
    hash_opaque,
    generate_session_id,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    "Settings",

    # Exceptions
    "AuthSystemException",
    "ValidationError",
    "MissingFieldError",
    "ConsentRequiredError",
    "PasswordValidationError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "TokenExpiredError",
    "TokenMissingError",
    "SessionRevokedError",
    "AuthorizationError",
    "InsufficientPermissionsError",
    "AccountPendingError",
    "AccountRejectedError",
    "AccountInactiveError",
    "NotFoundError",
    "ConflictError",
    "InvalidStatusTransitionError",
    "RateLimitExceeded",
    "InternalError",
    "RedisConnectionError",

    # Security
    "PasswordManager",
    "JWTManager",
    "PasswordValidator",
    "TokenPayload",
    "password_manager",
    "jwt_manager",
    "password_validator",
    "hash_opaque",
    "generate_session_id",
]
