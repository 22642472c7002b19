# =============================================================================
# BARANGAY AUTH SERVICE - ADMIN SERVICE
# =============================================================================
# File: auth/admin_service.py
# Description: Account approval workflow and session/audit oversight
# =============================================================================

from typing import Optional
from datetime import datetime, timezone
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from barangay_auth.auth.repository import (
    UserRepository,
    SessionRepository,
    AuditLogRepository,
)
from barangay_auth.auth.schemas import (
    PendingUser,
    PendingListResponse,
    UserProfile,
    AuditEntry,
    AuditSnapshotResponse,
)
from barangay_auth.db.models import User, AccountStatus, AuditAction
from barangay_auth.session.manager import SessionManager
from barangay_auth.session.models import ClientContext, SessionList
from barangay_auth.core.exceptions import (
    ValidationError,
    NotFoundError,
    InvalidStatusTransitionError,
)
from barangay_auth.utils.helpers import truncate_string


logger = logging.getLogger(__name__)


class AdminService:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    ADMIN SERVICE                                         │
    │  Approves, rejects and disables accounts; oversees sessions and audit   │
    └─────────────────────────────────────────────────────────────────────────┘

    Every state change is written together with its audit entry in one
    commit.
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._user_repo = UserRepository(session)
        self._session_repo = SessionRepository(session)
        self._audit_repo = AuditLogRepository(session)
        self._session_manager = SessionManager(session)

    # =========================================================================
    # APPROVAL WORKFLOW
    # =========================================================================

    async def list_pending(self, limit: int = 100) -> PendingListResponse:
        users = await self._user_repo.list_by_status(AccountStatus.PENDING, limit=limit)
        pending = [PendingUser.model_validate(u) for u in users]
        return PendingListResponse(users=pending, total=len(pending))

    async def approve(self, actor_id: str, user_id: str, client: ClientContext) -> UserProfile:
        """
        pending -> active; stamps verified_at.

        Raises:
            NotFoundError: Unknown account
            InvalidStatusTransitionError: Account is not pending
        """
        user = await self._get_user(user_id)
        self._check_transition(user, AccountStatus.ACTIVE)

        await self._user_repo.update(
            user,
            status=AccountStatus.ACTIVE,
            verified_at=datetime.now(timezone.utc),
        )
        await self._audit(actor_id, AuditAction.USER_APPROVED, user, client)
        await self._session.commit()

        logger.info(f"Account {user.id} approved by {actor_id}")
        return UserProfile.model_validate(user)

    async def reject(
        self,
        actor_id: str,
        user_id: str,
        reason: Optional[str],
        client: ClientContext,
    ) -> UserProfile:
        """
        pending -> rejected; a reason is required.

        Raises:
            ValidationError: Empty reason
            NotFoundError: Unknown account
            InvalidStatusTransitionError: Account is not pending
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Rejection reason is required", error_code="REASON_REQUIRED")

        user = await self._get_user(user_id)
        self._check_transition(user, AccountStatus.REJECTED)

        await self._user_repo.update(
            user,
            status=AccountStatus.REJECTED,
            rejected_at=datetime.now(timezone.utc),
            rejection_reason=reason,
        )
        await self._audit(actor_id, AuditAction.USER_REJECTED, user, client, {"reason": reason})
        await self._session.commit()

        logger.info(f"Account {user.id} rejected by {actor_id}")
        return UserProfile.model_validate(user)

    async def disable(self, actor_id: str, user_id: str, client: ClientContext) -> UserProfile:
        """
        active -> disabled; every open session of the account is revoked.
        """
        user = await self._get_user(user_id)
        self._check_transition(user, AccountStatus.DISABLED)

        await self._user_repo.update(user, status=AccountStatus.DISABLED)
        revoked = await self._session_repo.revoke_all_for_user(user.id)
        await self._audit(
            actor_id, AuditAction.USER_DISABLED, user, client, {"revokedSessions": revoked}
        )
        await self._session.commit()

        logger.info(f"Account {user.id} disabled by {actor_id} ({revoked} sessions revoked)")
        return UserProfile.model_validate(user)

    async def _get_user(self, user_id: str) -> User:
        user = await self._user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def _check_transition(user: User, target: str) -> None:
        if not AccountStatus.can_transition(user.status, target):
            raise InvalidStatusTransitionError(current=user.status, target=target)

    async def _audit(
        self,
        actor_id: str,
        action_type: str,
        user: User,
        client: ClientContext,
        extra: Optional[dict] = None,
    ) -> None:
        details = {"username": user.username, "status": user.status}
        if extra:
            details.update(extra)
        await self._audit_repo.create(
            action_type=action_type,
            user_id=actor_id,
            resource_type="users",
            resource_id=user.id,
            details=details,
            ip_address=client.ip_address,
            user_agent=truncate_string(client.user_agent),
        )

    # =========================================================================
    # SESSIONS
    # =========================================================================

    async def list_active_sessions(self, limit: int = 100) -> SessionList:
        return await self._session_manager.list_live_sessions(limit=limit)

    async def sign_out_session(
        self,
        actor_id: str,
        session_id: str,
        client: ClientContext,
    ) -> bool:
        """
        Revoke any account's session.

        Returns:
            bool: False when the session was already revoked

        Raises:
            NotFoundError: Unknown session
        """
        session_info = await self._session_manager.get_session(session_id)
        if session_info is None:
            raise NotFoundError("Session not found")

        revoked = await self._session_manager.revoke_session_by_id(session_id)
        await self._audit_repo.create(
            action_type=AuditAction.SESSION_SIGNOUT,
            user_id=actor_id,
            resource_type="sessions",
            resource_id=session_id,
            details={"accountId": session_info.user_id, "alreadyRevoked": not revoked},
            ip_address=client.ip_address,
            user_agent=truncate_string(client.user_agent),
        )
        await self._session.commit()

        logger.info(f"Session {session_id} signed out by {actor_id}")
        return revoked

    # =========================================================================
    # AUDIT
    # =========================================================================

    async def audit_snapshot(self, limit: int = 50) -> AuditSnapshotResponse:
        entries = await self._audit_repo.recent(limit=limit)
        items = [AuditEntry.model_validate(e) for e in entries]
        return AuditSnapshotResponse(entries=items, total=len(items))
