# =============================================================================
# BARANGAY AUTH SERVICE - AUTH ROUTES
# =============================================================================
# File: api/v1/auth_routes.py
# Description: Authentication API endpoints (register, login, logout, etc.)
# =============================================================================

from fastapi import APIRouter, Depends, status

from barangay_auth.auth.schemas import (
    RegisterRequest,
    RegisterResponse,
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    MessageResponse,
    AvailabilityResponse,
    RegistrationStatusResponse,
    MeResponse,
)
from barangay_auth.auth.dependencies import (
    AuthServiceDep,
    Client,
    CurrentAuth,
    LiveAuth,
)
from barangay_auth.api.middleware.audit_trail import audit_trail
from barangay_auth.db.models import AuditAction


router = APIRouter(prefix="/auth", tags=["Authentication"])


# =============================================================================
# REGISTRATION
# =============================================================================

@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a resident",
    description="Create a resident account. New accounts wait for admin approval.",
)
async def register(
    data: RegisterRequest,
    client: Client,
    auth_service: AuthServiceDep,
) -> RegisterResponse:
    """
    Register a new resident account.

    - **username**: 3-20 characters, letters, digits and underscores
    - **password**: at least 8 characters with upper, lower, digit and symbol
    - **dateOfBirth**: resident must be 16 to 90 years old
    - **acceptedTerms** / **acceptedPrivacy**: both must be true
    """
    return await auth_service.register(data, client)


@router.get(
    "/check-username/{username}",
    response_model=AvailabilityResponse,
    summary="Check username availability",
)
async def check_username(username: str, auth_service: AuthServiceDep) -> AvailabilityResponse:
    available = await auth_service.check_username_available(username)
    return AvailabilityResponse(available=available)


@router.get(
    "/check-email/{email}",
    response_model=AvailabilityResponse,
    summary="Check email availability",
)
async def check_email(email: str, auth_service: AuthServiceDep) -> AvailabilityResponse:
    available = await auth_service.check_email_available(email)
    return AvailabilityResponse(available=available)


@router.get(
    "/status/{reference_id}",
    response_model=RegistrationStatusResponse,
    summary="Registration status",
    description="Look up a registration by its reference id. No authentication.",
)
async def registration_status(
    reference_id: str,
    auth_service: AuthServiceDep,
) -> RegistrationStatusResponse:
    return await auth_service.registration_status(reference_id)


# =============================================================================
# LOGIN / TOKENS
# =============================================================================

@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Authenticate",
    description="Login with username or email to receive access and refresh tokens.",
)
async def login(
    data: LoginRequest,
    client: Client,
    auth_service: AuthServiceDep,
) -> LoginResponse:
    """
    Authenticate and open a session.

    Returns:
    - **accessToken**: bearer token for API access (24 h)
    - **refreshToken**: token for minting new access tokens (7 days)
    - **user**: id, username, email and role
    """
    return await auth_service.login(
        identifier=data.username,
        password=data.password,
        client=client,
        remember_me=data.remember_me,
    )


@router.post(
    "/refresh",
    response_model=RefreshResponse,
    summary="Refresh access token",
)
async def refresh_token(
    data: RefreshRequest,
    auth_service: AuthServiceDep,
) -> RefreshResponse:
    return await auth_service.refresh(data.refresh_token)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout current session",
    dependencies=[Depends(audit_trail(AuditAction.USER_LOGOUT))],
)
async def logout(
    auth: CurrentAuth,
    auth_service: AuthServiceDep,
) -> MessageResponse:
    """
    Revoke the session behind the bearer token. Repeating it is harmless.
    """
    await auth_service.logout(auth.token, auth.session_id)
    return MessageResponse(message="Logged out successfully")


# =============================================================================
# CURRENT USER
# =============================================================================

@router.get(
    "/me",
    response_model=MeResponse,
    summary="Current user profile",
)
async def me(
    auth: LiveAuth,
    auth_service: AuthServiceDep,
) -> MeResponse:
    profile = await auth_service.me(auth.user_id)
    return MeResponse(user=profile)
