# =============================================================================
# DATABASE ADAPTERS INITIALIZATION
# =============================================================================
# File: db/adapters/__init__.py
# Description: Adapters module exports
# =============================================================================

from barangay_auth.db.adapters.sqlite_adapter import SQLiteAdapter
from barangay_auth.db.adapters.postgres_adapter import PostgresAdapter
from barangay_auth.db.adapters.redis_adapter import RedisAdapter

__all__ = [
    "SQLiteAdapter",
    "PostgresAdapter",
    "RedisAdapter",
]
