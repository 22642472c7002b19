# =============================================================================
# BARANGAY AUTH SERVICE - DATABASE BASE MODULE
# =============================================================================
# File: db/base.py
# Description: Abstract database interface defining the adapter pattern
#              SQLite and PostgreSQL adapters conform to this interface
# =============================================================================

from abc import ABC, abstractmethod
from typing import Any, Optional, AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    AsyncEngine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import MetaData, text


# =============================================================================
# SQLALCHEMY BASE CONFIGURATION
# =============================================================================

# Naming convention for constraints (important for migrations)
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=NAMING_CONVENTION)


class Base(DeclarativeBase):
    """
    SQLAlchemy declarative base with custom metadata.
    All ORM models inherit from this base class.
    """
    metadata = metadata


# =============================================================================
# ABSTRACT DATABASE ADAPTER INTERFACE
# =============================================================================

class IDBAdapter(ABC):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    ABSTRACT DATABASE ADAPTER INTERFACE                   │
    │  Contract shared by the SQLite and PostgreSQL implementations           │
    └─────────────────────────────────────────────────────────────────────────┘

    Methods:
        connect()       - Establish database connection
        disconnect()    - Close database connection
        get_session()   - Get async session for operations
        create_tables() - Initialize database schema
        ping()          - Round-trip a trivial query
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the database."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close database connection and cleanup resources."""
        pass

    @abstractmethod
    def get_session(self) -> Any:
        """
        Provide an async database session context manager.

        Usage:
            async with adapter.get_session() as session:
                result = await session.execute(query)
        """
        pass

    @abstractmethod
    async def create_tables(self) -> None:
        """Create all defined tables if they don't exist."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Return True when the database answers a trivial query."""
        pass

    @property
    @abstractmethod
    def engine(self) -> AsyncEngine:
        """Get the underlying SQLAlchemy async engine."""
        pass


# =============================================================================
# BASE ADAPTER IMPLEMENTATION
# =============================================================================

class BaseDBAdapter(IDBAdapter):
    """
    Base implementation of database adapter with common functionality.
    Concrete adapters (SQLite, PostgreSQL) extend this class.
    """

    def __init__(self, database_url: str, **engine_options: Any):
        """
        Initialize base adapter with database URL.

        Args:
            database_url: Async-compatible database URL
            **engine_options: Additional SQLAlchemy engine options
        """
        self._database_url = database_url
        self._engine_options = engine_options
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._is_connected = False

    async def connect(self) -> None:
        """
        Create async engine and session factory.
        """
        if self._is_connected:
            return

        self._engine = create_async_engine(
            self._database_url,
            **self._engine_options
        )
        self._on_engine_created(self._engine)

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        self._is_connected = True

    def _on_engine_created(self, engine: AsyncEngine) -> None:
        """Hook for backend-specific engine setup."""

    async def disconnect(self) -> None:
        """
        Dispose of engine and cleanup connections.
        """
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._is_connected = False

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide session with automatic commit/rollback handling.

        Commits on successful exit, rolls back on exception.
        """
        if not self._session_factory:
            await self.connect()

        session = self._session_factory()  # type: ignore
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_tables(self) -> None:
        """
        Create all tables defined in SQLAlchemy metadata.
        """
        if not self._engine:
            await self.connect()

        async with self._engine.begin() as conn:  # type: ignore
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        async with self.get_session() as session:
            await session.execute(text("SELECT 1"))
        return True

    @property
    def engine(self) -> AsyncEngine:
        """Get the SQLAlchemy engine."""
        if not self._engine:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._is_connected


# =============================================================================
# REDIS ADAPTER INTERFACE
# =============================================================================

class IRedisAdapter(ABC):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    ABSTRACT REDIS ADAPTER INTERFACE                      │
    │  Keyed counters with expiry, used by the shared rate limiter            │
    └─────────────────────────────────────────────────────────────────────────┘
    """

    @abstractmethod
    async def connect(self) -> None:
        """Establish Redis connection."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close Redis connection."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get value by key."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key."""
        pass

    @abstractmethod
    async def incr_with_expiry(self, key: str, ttl: int) -> int:
        """Increment counter, starting its expiry window on first increment."""
        pass

    @abstractmethod
    async def ttl(self, key: str) -> int:
        """Get remaining TTL in seconds."""
        pass

    @abstractmethod
    async def check_health(self) -> bool:
        """Ping the server."""
        pass
