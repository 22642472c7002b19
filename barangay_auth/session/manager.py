# =============================================================================
# BARANGAY AUTH SERVICE - SESSION MANAGER
# =============================================================================
# File: session/manager.py
# Description: Session ledger lifecycle: create on login, revoke on logout or
#              admin sign-out, liveness checks for session-bound endpoints
# =============================================================================

from typing import Optional
from datetime import datetime, timezone, timedelta
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from barangay_auth.session.models import ClientContext, SessionInfo, SessionList
from barangay_auth.auth.repository import SessionRepository
from barangay_auth.core.config import settings
from barangay_auth.core.security import hash_opaque


logger = logging.getLogger(__name__)


class SessionManager:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    SESSION MANAGER                                       │
    │  Owns the sessions table: one row per successful login                  │
    └─────────────────────────────────────────────────────────────────────────┘

    Session Flow:
        1. Create:   Store token digests, client context and expiry
        2. Validate: Row exists, revoked_at is null, expires_at in the future
        3. Revoke:   Set revoked_at (idempotent)

    Expiry is created_at + session_ttl_hours whether or not remember-me was
    requested; the flag is only recorded.
    """

    def __init__(self, db_session: AsyncSession):
        """
        Initialize session manager.

        Args:
            db_session: Database session for persistent storage
        """
        self._db_session = db_session
        self._session_repo = SessionRepository(db_session)

    async def create_session(
        self,
        account_id: str,
        session_id: str,
        access_token: str,
        refresh_token: str,
        client: ClientContext,
        remember_me: bool = False,
    ) -> str:
        """
        Persist a session for a freshly issued token pair.

        Args:
            account_id: Owner of the session
            session_id: Identifier already embedded in both tokens as "sid"
            access_token: Raw access token (only its digest is stored)
            refresh_token: Raw refresh token (only its digest is stored)
            client: Request origin
            remember_me: Recorded as submitted

        Returns:
            str: The session ID
        """
        expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.session_ttl_hours)

        await self._session_repo.create(
            session_id=session_id,
            user_id=account_id,
            token_hash=hash_opaque(access_token),
            refresh_token_hash=hash_opaque(refresh_token),
            expires_at=expires_at,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            remember_me=remember_me,
        )

        return session_id

    async def revoke_session(
        self,
        access_token: str,
        session_id: Optional[str] = None,
    ) -> bool:
        """
        Revoke the session an access token belongs to.

        Matches on the access-token digest first; tokens minted by refresh
        have a different digest, so the "sid" claim is the fallback.
        Calling this for an already revoked or unknown session is a no-op.

        Returns:
            bool: True if a row changed
        """
        changed = await self._session_repo.revoke_by_token_hash(hash_opaque(access_token))

        if not changed and session_id:
            changed = await self._session_repo.revoke_by_id(session_id)

        return changed > 0

    async def revoke_session_by_id(self, session_id: str) -> bool:
        """Revoke a session by its identifier (admin sign-out)."""
        return await self._session_repo.revoke_by_id(session_id) > 0

    async def is_session_live(self, session_id: Optional[str]) -> bool:
        """
        Check that a session exists, is not revoked and has not expired.
        """
        if not session_id:
            return False

        session_obj = await self._session_repo.get_by_id(session_id)
        return session_obj is not None and session_obj.is_live

    async def get_session(self, session_id: str) -> Optional[SessionInfo]:
        session_obj = await self._session_repo.get_by_id(session_id)
        if session_obj is None:
            return None
        return SessionInfo.model_validate(session_obj)

    async def list_live_sessions(self, limit: int = 100) -> SessionList:
        """
        All unrevoked, unexpired sessions across accounts.
        """
        sessions = await self._session_repo.list_live(limit=limit)
        infos = [SessionInfo.model_validate(s) for s in sessions]
        return SessionList(sessions=infos, total=len(infos))
