# =============================================================================
# BARANGAY AUTH SERVICE - CORE EXCEPTIONS MODULE
# =============================================================================
# File: core/exceptions.py
# Description: Custom exception hierarchy for the authentication service
#              Provides granular error handling with HTTP status code mapping
# =============================================================================

from typing import Optional, Dict, Any, List
from fastapi import status


class AuthSystemException(Exception):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    BASE EXCEPTION CLASS                                  │
    │  All custom exceptions inherit from this base class                      │
    │  Provides consistent error structure across the application             │
    └─────────────────────────────────────────────────────────────────────────┘

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error identifier
        status_code: HTTP status code for API responses
        details: Additional context for the client
        headers: Extra response headers (e.g. Retry-After)
    """

    def __init__(
        self,
        message: str = "An error occurred",
        error_code: str = "AUTH_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the JSON error envelope."""
        return {
            "success": False,
            "error": self.message,
            "errorCode": self.error_code,
            "details": self.details,
        }


# =============================================================================
# VALIDATION EXCEPTIONS (400)
# =============================================================================

class ValidationError(AuthSystemException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str = "Validation failed",
        error_code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class MissingFieldError(ValidationError):
    """Raised when required fields are absent; lists every missing field."""

    def __init__(self, fields: List[str]):
        self.fields = list(fields)
        super().__init__(
            message=f"Missing required fields: {', '.join(self.fields)}",
            error_code="MISSING_FIELDS",
            details={"missing": self.fields},
        )


class ConsentRequiredError(ValidationError):
    """Raised when terms or privacy policy were not accepted."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="You must accept Terms & Conditions and Privacy Policy",
            error_code="CONSENT_REQUIRED",
            details=details,
        )


class PasswordValidationError(ValidationError):
    """
    Raised when a password breaks one or more rules.

    The message is the first violation; every violation is in details.
    """

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(
            message=self.errors[0] if self.errors else "Password does not meet requirements",
            error_code="PASSWORD_VALIDATION_ERROR",
            details={"validation_errors": self.errors},
        )


# =============================================================================
# AUTHENTICATION EXCEPTIONS (401)
# =============================================================================

class AuthenticationError(AuthSystemException):
    """
    Raised when authentication fails (invalid credentials, expired token, etc.)
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        error_code: str = "AUTHENTICATION_FAILED",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details
        )


class InvalidCredentialsError(AuthenticationError):
    """
    Raised when identifier/password combination is invalid.

    Identical for unknown accounts and wrong passwords.
    """

    def __init__(self):
        super().__init__(
            message="Invalid credentials",
            error_code="INVALID_CREDENTIALS",
        )


class InvalidTokenError(AuthenticationError):
    """Raised when a token is malformed, badly signed, expired or of the wrong type."""

    def __init__(
        self,
        message: str = "Invalid or expired token",
        error_code: str = "TOKEN_INVALID",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details=details
        )


class TokenExpiredError(InvalidTokenError):
    """Raised when JWT token has expired."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Token has expired",
            error_code="TOKEN_EXPIRED",
            details=details
        )


class TokenMissingError(InvalidTokenError):
    """Raised when authentication token is not provided."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="No authorization token provided",
            error_code="TOKEN_MISSING",
            details=details
        )


class SessionRevokedError(InvalidTokenError):
    """Raised when the session behind a token was logged out or expired."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Session is no longer active",
            error_code="SESSION_REVOKED",
            details=details
        )


# =============================================================================
# ACCOUNT STATE & AUTHORIZATION EXCEPTIONS (403)
# =============================================================================

class AuthorizationError(AuthSystemException):
    """Raised when the caller may not perform the requested action."""

    def __init__(
        self,
        message: str = "Access denied",
        error_code: str = "AUTHORIZATION_FAILED",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class InsufficientPermissionsError(AuthorizationError):
    """Raised when user doesn't have a required role."""

    def __init__(self, allowed_roles: Optional[List[str]] = None):
        super().__init__(
            message="Insufficient permissions",
            error_code="INSUFFICIENT_PERMISSIONS",
            details={"allowed_roles": allowed_roles} if allowed_roles else None,
        )


class AccountPendingError(AuthorizationError):
    """Raised on login to an account still awaiting admin approval."""

    def __init__(self, reference_id: str):
        self.reference_id = reference_id
        super().__init__(
            message="Account pending approval",
            error_code="ACCOUNT_PENDING",
            details={"referenceId": reference_id},
        )


class AccountRejectedError(AuthorizationError):
    """Raised on login to a rejected account."""

    def __init__(self):
        super().__init__(
            message="Account has been rejected",
            error_code="ACCOUNT_REJECTED",
        )


class AccountInactiveError(AuthorizationError):
    """Raised on login to an account in any other non-active state."""

    def __init__(self):
        super().__init__(
            message="Account is not active",
            error_code="ACCOUNT_INACTIVE",
        )


# =============================================================================
# RESOURCE EXCEPTIONS (404 / 409)
# =============================================================================

class NotFoundError(AuthSystemException):
    """Raised when a requested resource does not exist."""

    def __init__(self, message: str = "User not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details=details
        )


class ConflictError(AuthSystemException):
    """Raised when a username or email is already taken."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details={"field": field} if field else None,
        )


class InvalidStatusTransitionError(AuthSystemException):
    """Raised when an account status change is not allowed."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot change account status from {current} to {target}",
            error_code="INVALID_STATUS_TRANSITION",
            status_code=status.HTTP_409_CONFLICT,
            details={"current": current, "target": target},
        )


# =============================================================================
# RATE LIMITING (429)
# =============================================================================

class RateLimitExceeded(AuthSystemException):
    """Raised when a rate limit is exceeded; carries the remaining cooldown."""

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(
            message=f"Too many attempts. Try again in {retry_after} seconds.",
            error_code="RATE_LIMIT_EXCEEDED",
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            details={"retry_after": retry_after},
            headers={"Retry-After": str(retry_after)},
        )


# =============================================================================
# INTERNAL (500)
# =============================================================================

class InternalError(AuthSystemException):
    """Catch-all server error; the message never carries internals."""

    def __init__(self, message: str = "An internal error occurred"):
        super().__init__(
            message=message,
            error_code="INTERNAL_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class RedisConnectionError(InternalError):
    """Raised when the shared rate-limit store cannot be reached."""

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__(message="Failed to connect to Redis")
        self.error_code = "REDIS_CONNECTION_ERROR"
        self.details = details or {}
