# =============================================================================
# BARANGAY AUTH SERVICE - ADMIN ROUTES
# =============================================================================
# File: api/v1/admin_routes.py
# Description: Registration approval, session oversight and audit snapshot
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from barangay_auth.auth.schemas import (
    PendingListResponse,
    RejectRequest,
    StatusChangeResponse,
    MessageResponse,
    AuditSnapshotResponse,
)
from barangay_auth.auth.dependencies import (
    AdminServiceDep,
    AuthContext,
    Client,
    authorize,
)
from barangay_auth.db.models import AccountRole
from barangay_auth.session.models import SessionList


router = APIRouter(prefix="/admin", tags=["Administration"])


AdminAuth = Annotated[AuthContext, Depends(authorize(AccountRole.ADMIN))]
StaffAuth = Annotated[
    AuthContext,
    Depends(authorize(AccountRole.ADMIN, AccountRole.OFFICIAL, AccountRole.CLERK)),
]


# =============================================================================
# APPROVAL WORKFLOW
# =============================================================================

@router.get(
    "/pending",
    response_model=PendingListResponse,
    summary="List pending registrations",
)
async def list_pending(
    auth: StaffAuth,
    admin_service: AdminServiceDep,
    limit: int = Query(100, ge=1, le=500),
) -> PendingListResponse:
    return await admin_service.list_pending(limit=limit)


@router.post(
    "/pending/{user_id}/approve",
    response_model=StatusChangeResponse,
    summary="Approve a registration",
)
async def approve(
    user_id: str,
    auth: AdminAuth,
    client: Client,
    admin_service: AdminServiceDep,
) -> StatusChangeResponse:
    user = await admin_service.approve(auth.user_id, user_id, client)
    return StatusChangeResponse(message="User approved", user=user)


@router.post(
    "/pending/{user_id}/reject",
    response_model=StatusChangeResponse,
    summary="Reject a registration",
)
async def reject(
    user_id: str,
    data: RejectRequest,
    auth: AdminAuth,
    client: Client,
    admin_service: AdminServiceDep,
) -> StatusChangeResponse:
    user = await admin_service.reject(auth.user_id, user_id, data.reason, client)
    return StatusChangeResponse(message="User rejected", user=user)


@router.post(
    "/users/{user_id}/disable",
    response_model=StatusChangeResponse,
    summary="Disable an active account",
)
async def disable(
    user_id: str,
    auth: AdminAuth,
    client: Client,
    admin_service: AdminServiceDep,
) -> StatusChangeResponse:
    user = await admin_service.disable(auth.user_id, user_id, client)
    return StatusChangeResponse(message="User disabled", user=user)


# =============================================================================
# SESSIONS
# =============================================================================

@router.get(
    "/active-sessions",
    response_model=SessionList,
    summary="List live sessions",
)
async def active_sessions(
    auth: AdminAuth,
    admin_service: AdminServiceDep,
    limit: int = Query(100, ge=1, le=500),
) -> SessionList:
    return await admin_service.list_active_sessions(limit=limit)


@router.post(
    "/sessions/{session_id}/signout",
    response_model=MessageResponse,
    summary="Force sign-out of a session",
)
async def signout_session(
    session_id: str,
    auth: AdminAuth,
    client: Client,
    admin_service: AdminServiceDep,
) -> MessageResponse:
    revoked = await admin_service.sign_out_session(auth.user_id, session_id, client)
    message = "Session signed out" if revoked else "Session already signed out"
    return MessageResponse(message=message)


# =============================================================================
# AUDIT
# =============================================================================

@router.get(
    "/audit-snapshot",
    response_model=AuditSnapshotResponse,
    summary="Recent audit entries",
)
async def audit_snapshot(
    auth: AdminAuth,
    admin_service: AdminServiceDep,
    limit: int = Query(50, ge=1, le=500),
) -> AuditSnapshotResponse:
    return await admin_service.audit_snapshot(limit=limit)
