# =============================================================================
# DATABASE MODULE INITIALIZATION
# =============================================================================
# File: db/__init__.py
# Description: Database module exports
# =============================================================================

from barangay_auth.db.base import Base, IDBAdapter, BaseDBAdapter, IRedisAdapter
from barangay_auth.db.factory import (
    DBFactory,
    DatabaseType,
    get_db_session,
)
from barangay_auth.db.models import (
    User,
    Resident,
    Official,
    Session,
    LoginAttempt,
    AuditLog,
    AuditAction,
    AccountRole,
    AccountStatus,
)
from barangay_auth.db.adapters import (
    SQLiteAdapter,
    PostgresAdapter,
    RedisAdapter,
)

__all__ = [
    # Base
    "Base",
    "IDBAdapter",
    "BaseDBAdapter",
    "IRedisAdapter",

    # Factory
    "DBFactory",
    "DatabaseType",
    "get_db_session",

    # Models
    "User",
    "Resident",
    "Official",
    "Session",
    "LoginAttempt",
    "AuditLog",
    "AuditAction",
    "AccountRole",
    "AccountStatus",

    # Adapters
    "SQLiteAdapter",
    "PostgresAdapter",
    "RedisAdapter",
]
