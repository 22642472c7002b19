# =============================================================================
# BARANGAY AUTH SERVICE - AUTH REPOSITORY
# =============================================================================
# File: auth/repository.py
# Description: Data access layer for accounts, profiles, sessions, login
#              attempts and audit entries (repository pattern, SQLAlchemy async)
# =============================================================================

from typing import Optional, List
from datetime import datetime, date, timezone

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from barangay_auth.db.models import (
    User,
    Resident,
    Official,
    Session,
    LoginAttempt,
    AuditLog,
    AccountStatus,
)


class UserRepository:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    USER REPOSITORY                                       │
    │  Data access layer for accounts and their profile rows                  │
    │  Provides clean separation between business logic and data access       │
    └─────────────────────────────────────────────────────────────────────────┘

    All methods are async and work with SQLAlchemy AsyncSession.
    The repository does not handle transactions - that's the caller's
    responsibility. Usernames and emails are lowercased on the way in, so
    every lookup is case-insensitive.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self._session = session

    # =========================================================================
    # CREATE OPERATIONS
    # =========================================================================

    async def create(
        self,
        username: str,
        email: str,
        password_hash: str,
        role: str,
        status: str = AccountStatus.PENDING,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        phone_number: Optional[str] = None,
        purok: Optional[str] = None,
        verified_at: Optional[datetime] = None,
    ) -> User:
        """
        Create a new account.

        Returns:
            User: Created account

        Raises:
            sqlalchemy.exc.IntegrityError: On a username/email collision
        """
        user = User(
            username=username.lower(),
            email=email.lower(),
            password_hash=password_hash,
            role=role,
            status=status,
            first_name=first_name,
            last_name=last_name,
            date_of_birth=date_of_birth,
            phone_number=phone_number,
            purok=purok,
            verified_at=verified_at,
        )

        self._session.add(user)
        await self._session.flush()
        await self._session.refresh(user)

        return user

    async def create_resident_profile(
        self,
        user: User,
        contact_number: Optional[str] = None,
    ) -> Resident:
        """Create the resident profile row for an account."""
        profile = Resident(
            user_id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            date_of_birth=user.date_of_birth,
            purok=user.purok,
            contact_number=contact_number or user.phone_number,
        )
        self._session.add(profile)
        await self._session.flush()
        return profile

    async def create_official_profile(
        self,
        user: User,
        position: Optional[str] = None,
        office: Optional[str] = None,
    ) -> Official:
        """Create the official profile row for an account."""
        profile = Official(
            user_id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            position=position,
            office=office,
            phone_number=user.phone_number,
        )
        self._session.add(profile)
        await self._session.flush()
        return profile

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get_by_id(self, user_id: str) -> Optional[User]:
        result = await self._session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self._session.execute(
            select(User).where(User.username == username.lower())
        )
        return result.scalar_one_or_none()

    async def get_by_identifier(self, identifier: str) -> Optional[User]:
        """
        Get account by username or email.

        Args:
            identifier: Username or email, any case

        Returns:
            User if found, None otherwise
        """
        identifier_lower = identifier.lower()
        result = await self._session.execute(
            select(User)
            .where(
                (User.username == identifier_lower) |
                (User.email == identifier_lower)
            )
            .limit(1)
        )
        return result.scalars().first()

    async def exists_username(self, username: str) -> bool:
        result = await self._session.execute(
            select(func.count()).select_from(User).where(
                User.username == username.lower()
            )
        )
        return result.scalar() > 0

    async def exists_email(self, email: str) -> bool:
        result = await self._session.execute(
            select(func.count()).select_from(User).where(
                User.email == email.lower()
            )
        )
        return result.scalar() > 0

    async def list_by_status(
        self,
        status: str,
        skip: int = 0,
        limit: int = 100,
    ) -> List[User]:
        """
        List accounts in a given status, oldest first.
        """
        result = await self._session.execute(
            select(User)
            .where(User.status == status)
            .order_by(User.created_at.asc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    # =========================================================================
    # UPDATE OPERATIONS
    # =========================================================================

    async def update(self, user: User, **kwargs) -> User:
        """
        Update account fields.

        Args:
            user: Account to update
            **kwargs: Fields to update

        Returns:
            Updated account
        """
        for key, value in kwargs.items():
            if hasattr(user, key):
                setattr(user, key, value)

        await self._session.flush()
        await self._session.refresh(user)

        return user

    async def update_password_hash(self, user: User, password_hash: str) -> User:
        user.password_hash = password_hash
        await self._session.flush()
        return user

    async def update_last_login(self, user: User) -> User:
        user.last_login_at = datetime.now(timezone.utc)
        await self._session.flush()
        return user


class SessionRepository:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    SESSION REPOSITORY                                    │
    │  Data access layer for Session entity operations                        │
    └─────────────────────────────────────────────────────────────────────────┘
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self._session = session

    async def create(
        self,
        session_id: str,
        user_id: str,
        token_hash: str,
        refresh_token_hash: Optional[str],
        expires_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        remember_me: bool = False,
    ) -> Session:
        """Create a new session."""
        session_obj = Session(
            id=session_id,
            user_id=user_id,
            token_hash=token_hash,
            refresh_token_hash=refresh_token_hash,
            ip_address=ip_address,
            user_agent=user_agent,
            remember_me=remember_me,
            expires_at=expires_at,
        )

        self._session.add(session_obj)
        await self._session.flush()
        await self._session.refresh(session_obj)

        return session_obj

    async def get_by_id(self, session_id: str) -> Optional[Session]:
        result = await self._session.execute(
            select(Session).where(Session.id == session_id)
        )
        return result.scalar_one_or_none()

    async def list_live(self, limit: int = 100) -> List[Session]:
        """Unrevoked, unexpired sessions, newest first."""
        result = await self._session.execute(
            select(Session)
            .where(
                Session.revoked_at.is_(None) &
                (Session.expires_at > datetime.now(timezone.utc))
            )
            .order_by(Session.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def revoke_by_token_hash(self, token_hash: str) -> int:
        """
        Mark matching unrevoked sessions revoked.

        Returns:
            Number of rows changed
        """
        result = await self._session.execute(
            update(Session)
            .where(
                (Session.token_hash == token_hash) &
                Session.revoked_at.is_(None)
            )
            .values(revoked_at=datetime.now(timezone.utc))
        )
        await self._session.flush()
        return result.rowcount

    async def revoke_all_for_user(self, user_id: str) -> int:
        """Revoke every unrevoked session of an account."""
        result = await self._session.execute(
            update(Session)
            .where(
                (Session.user_id == user_id) &
                Session.revoked_at.is_(None)
            )
            .values(revoked_at=datetime.now(timezone.utc))
        )
        await self._session.flush()
        return result.rowcount

    async def revoke_by_id(self, session_id: str) -> int:
        result = await self._session.execute(
            update(Session)
            .where(
                (Session.id == session_id) &
                Session.revoked_at.is_(None)
            )
            .values(revoked_at=datetime.now(timezone.utc))
        )
        await self._session.flush()
        return result.rowcount


class LoginAttemptRepository:
    """Append-only repository for login attempts."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self._session = session

    async def record(
        self,
        identifier: str,
        success: bool,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginAttempt:
        """Append one attempt row."""
        attempt = LoginAttempt(
            identifier=identifier,
            success=success,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self._session.add(attempt)
        await self._session.flush()
        return attempt


class AuditLogRepository:
    """Append-only repository for audit log entries."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session."""
        self._session = session

    async def create(
        self,
        action_type: str,
        user_id: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """Create a new audit log entry."""
        log = AuditLog(
            user_id=user_id,
            action_type=action_type,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            ip_address=ip_address,
            user_agent=user_agent,
        )

        self._session.add(log)
        await self._session.flush()

        return log

    async def recent(self, limit: int = 50) -> List[AuditLog]:
        """Most recent entries, newest first."""
        result = await self._session.execute(
            select(AuditLog)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
