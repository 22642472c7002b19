# =============================================================================
# BARANGAY AUTH SERVICE - SQLITE ADAPTER
# =============================================================================
# File: db/adapters/sqlite_adapter.py
# Description: SQLite database adapter for development and testing
#              Uses aiosqlite for async operations with SQLAlchemy
# =============================================================================

from typing import Any, Optional
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

from barangay_auth.db.base import BaseDBAdapter
from barangay_auth.core.config import settings


class SQLiteAdapter(BaseDBAdapter):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    SQLITE DATABASE ADAPTER                               │
    │  Async SQLite implementation for development and testing environments   │
    │  Uses aiosqlite driver with SQLAlchemy async ORM                        │
    └─────────────────────────────────────────────────────────────────────────┘

    Features:
        - Zero-configuration setup
        - File-based persistent storage
        - Auto-creation of database directory
        - Per-connection PRAGMAs (WAL, foreign keys, busy timeout)

    Usage:
        adapter = SQLiteAdapter()
        await adapter.connect()
        async with adapter.get_session() as session:
            ...
        await adapter.disconnect()
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        **kwargs: Any
    ):
        """
        Initialize SQLite adapter.

        Args:
            database_url: Optional custom database URL
                         Defaults to settings.resolved_database_url
            **kwargs: Additional engine options
        """
        if database_url is None:
            database_url = settings.resolved_database_url

        # Ensure database directory exists for file-based SQLite
        if ":memory:" not in database_url:
            db_path = database_url.split(":///", 1)[-1]
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        default_options = {
            "echo": settings.debug,
            "connect_args": {
                "check_same_thread": False,
                "timeout": 30,
            },
        }
        default_options.update(kwargs)

        super().__init__(database_url, **default_options)

    def _on_engine_created(self, engine: AsyncEngine) -> None:
        """
        Apply SQLite PRAGMAs on every new DBAPI connection.

        PRAGMAs are connection-scoped, so they are set from the pool's
        connect event rather than once per adapter.
        """

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA busy_timeout=30000")
            cursor.close()

    @classmethod
    def create_for_testing(cls, db_path: str) -> "SQLiteAdapter":
        """
        Create a file-backed SQLite adapter for testing.

        A file (not ":memory:") is used so that every pooled connection
        sees the same database.
        """
        return cls(
            database_url=f"sqlite+aiosqlite:///{db_path}",
            echo=False,
        )
