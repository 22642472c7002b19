# =============================================================================
# BARANGAY AUTH SERVICE - DATABASE MODELS
# =============================================================================
# File: db/models.py
# Description: SQLAlchemy ORM models for accounts, resident/official profiles,
#              sessions, login attempts and the audit trail
# =============================================================================

from typing import Optional
from datetime import datetime, date, timezone
from uuid import uuid4

from sqlalchemy import (
    String,
    Boolean,
    Date,
    DateTime,
    Text,
    ForeignKey,
    Index,
    JSON,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from barangay_auth.db.base import Base


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid4())


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a stored timestamp to an aware UTC datetime.

    SQLite hands back naive datetimes even for timezone-aware columns.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# ENUMERATED CONSTANTS
# =============================================================================

class AccountRole:
    """Constants for account roles."""

    RESIDENT = "resident"
    OFFICIAL = "official"
    ADMIN = "admin"
    CLERK = "clerk"

    ALL = (RESIDENT, OFFICIAL, ADMIN, CLERK)


class AccountStatus:
    """
    Constants for account lifecycle states.

    Allowed transitions:
        pending -> active     (approval)
        pending -> rejected   (rejection)
        active  -> disabled   (admin disable)
    """

    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    DISABLED = "disabled"

    TRANSITIONS = {
        PENDING: frozenset({ACTIVE, REJECTED}),
        ACTIVE: frozenset({DISABLED}),
        REJECTED: frozenset(),
        DISABLED: frozenset(),
    }

    @classmethod
    def can_transition(cls, current: str, target: str) -> bool:
        return target in cls.TRANSITIONS.get(current, frozenset())


# =============================================================================
# USER (ACCOUNT) MODEL
# =============================================================================

class User(Base):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    USER MODEL                                            │
    │  A person's login identity with role and approval status                │
    └─────────────────────────────────────────────────────────────────────────┘

    Fields:
        - id:               UUID primary key (also the registration reference)
        - username:         Unique, stored lowercase
        - email:            Unique, stored lowercase
        - password_hash:    Argon2id (or legacy bcrypt) hash
        - role:             resident | official | admin | clerk
        - status:           pending | active | rejected | disabled
        - verified_at:      Set when an admin approves the account
        - rejected_at:      Set when an admin rejects the account
        - rejection_reason: Reason given on rejection
        - last_login_at:    Last successful login

    Relationships:
        - resident_profile: One-to-one with Resident
        - official_profile: One-to-one with Official
    """

    __tablename__ = "users"

    # Primary Key
    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid
    )

    # Credentials
    username: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )

    # Role & Status
    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=AccountRole.RESIDENT
    )
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=AccountStatus.PENDING,
        index=True
    )

    # Personal Details
    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    purok: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Approval Workflow
    verified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )
    rejected_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    last_login_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False
    )

    # Relationships
    resident_profile: Mapped[Optional["Resident"]] = relationship(
        "Resident",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    official_profile: Mapped[Optional["Official"]] = relationship(
        "Official",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_users_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, status={self.status})>"

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE


# =============================================================================
# PROFILE MODELS
# =============================================================================

class Resident(Base):
    """Resident profile created alongside a resident account."""

    __tablename__ = "residents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    purok: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="resident_profile")

    def __repr__(self) -> str:
        return f"<Resident(id={self.id}, user_id={self.user_id})>"


class Official(Base):
    """Official profile created alongside an official account."""

    __tablename__ = "officials"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    position: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    office: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False
    )

    user: Mapped["User"] = relationship("User", back_populates="official_profile")

    def __repr__(self) -> str:
        return f"<Official(id={self.id}, user_id={self.user_id})>"


# =============================================================================
# SESSION MODEL
# =============================================================================

class Session(Base):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    SESSION MODEL                                         │
    │  One row per successful login, revocable by logout or an admin          │
    └─────────────────────────────────────────────────────────────────────────┘

    Fields:
        - id:                 UUID primary key (the "sid" token claim)
        - user_id:            Foreign key to users table
        - token_hash:         SHA-256 digest of the access token
        - refresh_token_hash: SHA-256 digest of the refresh token
        - remember_me:        Recorded as given; does not extend expiry
        - expires_at:         created_at + session TTL
        - revoked_at:         Non-null once logged out or signed out
    """

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Token Digests (raw tokens are never stored)
    token_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True
    )
    refresh_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True
    )

    # Client Context
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    remember_me: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Lifecycle
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True
    )
    revoked_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False
    )

    __table_args__ = (
        Index("ix_sessions_user_revoked", "user_id", "revoked_at"),
    )

    def __repr__(self) -> str:
        return f"<Session(id={self.id}, user_id={self.user_id})>"

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    @property
    def is_expired(self) -> bool:
        return datetime.now(timezone.utc) >= as_utc(self.expires_at)

    @property
    def is_live(self) -> bool:
        """Usable: not revoked and not expired."""
        return not self.is_revoked and not self.is_expired


# =============================================================================
# LOGIN ATTEMPT MODEL
# =============================================================================

class LoginAttempt(Base):
    """
    Append-only record of every authentication attempt.

    The identifier is the raw submitted value for unknown accounts and the
    canonical username once the account is resolved.
    """

    __tablename__ = "login_attempts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    identifier: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    attempt_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True
    )
    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<LoginAttempt(identifier={self.identifier}, success={self.success})>"


# =============================================================================
# AUDIT LOG MODEL
# =============================================================================

class AuditLog(Base):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    AUDIT LOG MODEL                                       │
    │  Append-only trail of state-changing actions                            │
    └─────────────────────────────────────────────────────────────────────────┘

    Fields:
        - user_id:       Acting account (null for system actions)
        - action_type:   One of AuditAction
        - resource_type: Kind of thing acted on (user, session, request path)
        - resource_id:   Identifier of the thing acted on
        - details:       Free-form JSON snapshot
    """

    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid
    )

    user_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    action_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True
    )
    resource_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    resource_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    details: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        default=dict
    )

    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action_type={self.action_type})>"


# =============================================================================
# AUDIT LOG ACTION TYPES
# =============================================================================

class AuditAction:
    """Constants for audit log action types."""

    # Registration & seeding
    USER_REGISTRATION = "USER_REGISTRATION"
    SYSTEM_INIT_USER = "SYSTEM_INIT_USER"

    # Approval workflow
    USER_APPROVED = "USER_APPROVED"
    USER_REJECTED = "USER_REJECTED"
    USER_DISABLED = "USER_DISABLED"

    # Sessions
    SESSION_SIGNOUT = "SESSION_SIGNOUT"
    USER_LOGOUT = "USER_LOGOUT"
