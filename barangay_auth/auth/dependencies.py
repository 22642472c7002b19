# =============================================================================
# BARANGAY AUTH SERVICE - AUTH DEPENDENCIES
# =============================================================================
# File: auth/dependencies.py
# Description: FastAPI dependencies for authentication and authorization
#              Provides reusable dependency injection for protected routes
# =============================================================================

from typing import Optional, Annotated, Callable
from dataclasses import dataclass

from fastapi import Depends, Header, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from sqlalchemy.ext.asyncio import AsyncSession

from barangay_auth.db.factory import get_db_session
from barangay_auth.auth.service import AuthService
from barangay_auth.auth.admin_service import AdminService
from barangay_auth.session.manager import SessionManager
from barangay_auth.session.models import ClientContext
from barangay_auth.core.security import jwt_manager
from barangay_auth.core.exceptions import (
    TokenMissingError,
    SessionRevokedError,
    InsufficientPermissionsError,
)


# =============================================================================
# SECURITY SCHEME
# =============================================================================

# Bearer token scheme; missing headers are reported by get_auth_context
bearer_scheme = HTTPBearer(
    scheme_name="Bearer",
    description="JWT access token",
    auto_error=False,
)


# =============================================================================
# DATABASE DEPENDENCIES
# =============================================================================

async def get_db_session_dep() -> AsyncSession:
    """
    Dependency for database session.

    Yields:
        AsyncSession: Database session with auto-commit/rollback
    """
    async for session in get_db_session():
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db_session_dep)]


# =============================================================================
# REQUEST CONTEXT
# =============================================================================

def get_client_ip(request: Request) -> str:
    """
    Extract client IP from request.

    Handles proxy headers (X-Forwarded-For, X-Real-IP).
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First hop is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


def get_user_agent(
    user_agent: Optional[str] = Header(None, alias="User-Agent"),
) -> Optional[str]:
    return user_agent


ClientIP = Annotated[str, Depends(get_client_ip)]
UserAgent = Annotated[Optional[str], Depends(get_user_agent)]


def get_client_context(ip_address: ClientIP, user_agent: UserAgent) -> ClientContext:
    return ClientContext(ip_address=ip_address, user_agent=user_agent)


Client = Annotated[ClientContext, Depends(get_client_context)]


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

async def get_auth_service(
    request: Request,
    session: DBSession,
) -> AuthService:
    """
    Dependency for authentication service.

    Limiters live on app.state so their counters outlive a single request.
    """
    return AuthService(
        session,
        login_limiter=getattr(request.app.state, "login_limiter", None),
        register_limiter=getattr(request.app.state, "register_limiter", None),
    )


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


async def get_admin_service(session: DBSession) -> AdminService:
    return AdminService(session)


AdminServiceDep = Annotated[AdminService, Depends(get_admin_service)]


# =============================================================================
# TOKEN VALIDATION
# =============================================================================

@dataclass(frozen=True)
class AuthContext:
    """Verified identity of the caller, taken from the access token."""
    user_id: str
    role: str
    session_id: Optional[str]
    token: str


async def get_auth_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AuthContext:
    """
    Verify the bearer access token.

    The context is also stored on ``request.state.auth`` for the audit
    trail, which runs after the response is sent.

    Raises:
        TokenMissingError: No bearer token
        TokenExpiredError: Token expired
        InvalidTokenError: Bad signature, malformed or refresh token
    """
    if credentials is None or not credentials.credentials:
        raise TokenMissingError()

    payload = jwt_manager.verify_token(credentials.credentials, expected_type="access")

    context = AuthContext(
        user_id=payload.sub,
        role=payload.role,
        session_id=payload.sid,
        token=credentials.credentials,
    )
    request.state.auth = context
    return context


CurrentAuth = Annotated[AuthContext, Depends(get_auth_context)]


async def get_live_auth_context(
    auth: CurrentAuth,
    session: DBSession,
) -> AuthContext:
    """
    Like get_auth_context, but the token's session must still be live.

    Raises:
        SessionRevokedError: Session revoked, expired or unknown
    """
    if not auth.session_id:
        raise SessionRevokedError()

    if not await SessionManager(session).is_session_live(auth.session_id):
        raise SessionRevokedError()

    return auth


LiveAuth = Annotated[AuthContext, Depends(get_live_auth_context)]


# =============================================================================
# ROLE GATES
# =============================================================================

def authorize(*roles: str) -> Callable:
    """
    Build a dependency that admits only the given roles.

    Usage:
        @router.get("/pending", dependencies=[Depends(authorize("admin"))])
    """
    allowed = list(roles)

    async def role_gate(auth: LiveAuth) -> AuthContext:
        if auth.role not in allowed:
            raise InsufficientPermissionsError(allowed_roles=allowed)
        return auth

    return role_gate
