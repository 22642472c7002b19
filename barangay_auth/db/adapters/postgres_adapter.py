# =============================================================================
# BARANGAY AUTH SERVICE - POSTGRESQL ADAPTER
# =============================================================================
# File: db/adapters/postgres_adapter.py
# Description: PostgreSQL database adapter for production environments
#              Uses asyncpg for async operations
# =============================================================================

from typing import Any, Optional

from barangay_auth.db.base import BaseDBAdapter
from barangay_auth.core.config import settings


class PostgresAdapter(BaseDBAdapter):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    POSTGRESQL DATABASE ADAPTER                           │
    │  Pooled async PostgreSQL implementation for production                  │
    │  Uses asyncpg driver with SQLAlchemy async ORM                          │
    └─────────────────────────────────────────────────────────────────────────┘

    Connection Pool Configuration:
        - pool_size:     Initial connections (default: 5)
        - max_overflow:  Extra connections allowed (default: 10)
        - pool_timeout:  Wait time for connection (default: 30s)
        - pool_recycle:  Recycle connections after (default: 1800s)

    Every connection carries a statement_timeout so a stuck query cannot
    hold a request forever.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        **kwargs: Any
    ):
        """
        Initialize PostgreSQL adapter with connection pool.

        Args:
            database_url: Optional custom database URL
                         Defaults to settings.resolved_database_url
            **kwargs: Additional engine options overriding defaults
        """
        if database_url is None:
            database_url = settings.resolved_database_url

        default_options = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_timeout": settings.db_pool_timeout,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
            "echo": settings.debug and settings.is_development,
            "connect_args": {
                "command_timeout": 60,
                "server_settings": {
                    "statement_timeout": str(settings.db_statement_timeout_ms),
                },
            },
        }
        default_options.update(kwargs)

        super().__init__(database_url, **default_options)
