# =============================================================================
# BARANGAY AUTH SERVICE - DATABASE FACTORY
# =============================================================================
# File: db/factory.py
# Description: Factory pattern for database adapter instantiation
#              Provides unified interface for switching between database backends
# =============================================================================

from typing import Optional, AsyncGenerator
from enum import Enum
import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from barangay_auth.db.base import BaseDBAdapter
from barangay_auth.db.adapters.sqlite_adapter import SQLiteAdapter
from barangay_auth.db.adapters.postgres_adapter import PostgresAdapter
from barangay_auth.db.adapters.redis_adapter import RedisAdapter
from barangay_auth.core.config import settings


logger = logging.getLogger(__name__)


class DatabaseType(str, Enum):
    """Supported database types."""
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class DBFactory:
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    DATABASE FACTORY                                      │
    │  Factory pattern implementation for creating database adapters          │
    │  Supports runtime switching between SQLite and PostgreSQL               │
    └─────────────────────────────────────────────────────────────────────────┘

    The factory keeps singleton adapters so the whole process shares one
    engine. Tests swap the singleton by assigning ``DBFactory._db_adapter``.

    Usage:
        db = DBFactory.get_db_adapter()
        await db.connect()
    """

    _db_adapter: Optional[BaseDBAdapter] = None
    _redis_adapter: Optional[RedisAdapter] = None

    @classmethod
    def get_db_adapter(
        cls,
        db_type: Optional[str] = None,
        force_new: bool = False,
        **kwargs
    ) -> BaseDBAdapter:
        """
        Get database adapter based on configuration or specified type.

        Args:
            db_type: Override database type (sqlite/postgresql)
                    Defaults to settings.resolved_db_type
            force_new: Force creation of new adapter instance
            **kwargs: Additional options passed to adapter

        Raises:
            ValueError: If unsupported database type specified
        """
        if not force_new and cls._db_adapter is not None:
            return cls._db_adapter

        selected_type = db_type or settings.resolved_db_type

        if selected_type == DatabaseType.SQLITE:
            adapter: BaseDBAdapter = SQLiteAdapter(**kwargs)
        elif selected_type == DatabaseType.POSTGRESQL:
            adapter = PostgresAdapter(**kwargs)
        else:
            raise ValueError(
                f"Unsupported database type: {selected_type}. "
                f"Supported types: {[t.value for t in DatabaseType]}"
            )

        if not force_new:
            cls._db_adapter = adapter

        return adapter

    @classmethod
    def get_redis_adapter(cls, force_new: bool = False, **kwargs) -> RedisAdapter:
        """
        Get Redis adapter instance (used by the shared rate limiter).
        """
        if not force_new and cls._redis_adapter is not None:
            return cls._redis_adapter

        adapter = RedisAdapter(**kwargs)

        if not force_new:
            cls._redis_adapter = adapter

        return adapter

    @classmethod
    async def connect_all(cls) -> None:
        """
        Connect the SQL database and, when the Redis limiter is selected, Redis.

        Convenience method for application startup.
        """
        db_adapter = cls.get_db_adapter()
        await db_adapter.connect()
        logger.info("Database connection established")

        if settings.rate_limit_backend == "redis":
            redis_adapter = cls.get_redis_adapter()
            await redis_adapter.connect()
            logger.info("Redis connection established")

    @classmethod
    async def disconnect_all(cls) -> None:
        """
        Disconnect from all databases.

        Convenience method for application shutdown.
        """
        if cls._db_adapter:
            await cls._db_adapter.disconnect()
            cls._db_adapter = None

        if cls._redis_adapter:
            await cls._redis_adapter.disconnect()
            cls._redis_adapter = None

    @classmethod
    async def create_tables(cls) -> None:
        """
        Create all database tables using SQLAlchemy metadata.
        """
        await cls.get_db_adapter().create_tables()

    @classmethod
    async def health_check(cls) -> dict:
        """
        Check health of all database connections.

        Returns:
            Dict with health status of each component; redis is None when the
            Redis backend is not in use
        """
        results = {
            "database": False,
            "redis": None,
        }

        if cls._db_adapter:
            try:
                results["database"] = await cls._db_adapter.ping()
            except (SQLAlchemyError, OSError) as e:
                logger.warning(f"Database health check failed: {e}")

        if cls._redis_adapter:
            results["redis"] = await cls._redis_adapter.check_health()

        return results

    @classmethod
    def reset(cls) -> None:
        """
        Reset singleton instances (useful for testing).
        """
        cls._db_adapter = None
        cls._redis_adapter = None


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database session.

    Usage:
        @router.get("/users")
        async def get_users(
            session: AsyncSession = Depends(get_db_session)
        ):
            ...
    """
    adapter = DBFactory.get_db_adapter()
    async with adapter.get_session() as session:
        yield session
