# =============================================================================
# BARANGAY AUTH SERVICE - REDIS ADAPTER
# =============================================================================
# File: db/adapters/redis_adapter.py
# Description: Redis adapter backing the shared rate-limit counters
#              Uses redis-py async client with a connection pool
# =============================================================================

from typing import Any, Optional

from redis.asyncio import Redis, ConnectionPool
from redis.exceptions import RedisError

from barangay_auth.db.base import IRedisAdapter
from barangay_auth.core.config import settings
from barangay_auth.core.exceptions import RedisConnectionError


class RedisAdapter(IRedisAdapter):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    REDIS ADAPTER                                         │
    │  Keyed counters shared by every service instance                        │
    └─────────────────────────────────────────────────────────────────────────┘

    Key Patterns:
        - ratelimit:{policy}:{key} → attempt counter, expires with the window

    A pre-built client (e.g. fakeredis in tests) may be injected; the adapter
    then skips pool creation.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        client: Optional[Redis] = None,
        **kwargs: Any
    ):
        """
        Initialize Redis adapter with connection pool.

        Args:
            redis_url: Optional Redis URL, defaults to settings.redis_url
            client: Already constructed async client to use instead of a pool
            **kwargs: Additional redis-py options
        """
        self._redis_url = redis_url or settings.redis_url
        self._options = kwargs

        self._default_options = {
            "max_connections": 10,
            "socket_timeout": 5.0,
            "socket_connect_timeout": 5.0,
            "retry_on_timeout": True,
            "decode_responses": True,
        }

        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = client
        self._is_connected = False

    async def connect(self) -> None:
        """
        Establish connection to Redis server.

        Raises:
            RedisConnectionError: If connection fails
        """
        if self._is_connected:
            return

        try:
            if self._client is None:
                options = {**self._default_options, **self._options}
                self._pool = ConnectionPool.from_url(self._redis_url, **options)
                self._client = Redis(connection_pool=self._pool)

            await self._client.ping()
            self._is_connected = True

        except RedisError as e:
            raise RedisConnectionError(
                details={"error": str(e), "url": self._redis_url}
            )

    async def disconnect(self) -> None:
        """
        Close Redis connection and cleanup resources.
        """
        if self._client:
            await self._client.aclose()
            self._client = None

        if self._pool:
            await self._pool.disconnect()
            self._pool = None

        self._is_connected = False

    def _ensure_connected(self) -> Redis:
        """Ensure client is connected and return it."""
        if not self._client or not self._is_connected:
            raise RuntimeError("Redis not connected. Call connect() first.")
        return self._client

    # =========================================================================
    # COUNTER OPERATIONS
    # =========================================================================

    async def get(self, key: str) -> Optional[str]:
        client = self._ensure_connected()
        return await client.get(key)

    async def delete(self, key: str) -> bool:
        client = self._ensure_connected()
        return await client.delete(key) > 0

    async def incr_with_expiry(self, key: str, ttl: int) -> int:
        """
        Increment a counter; the first increment opens a TTL window.

        INCR and EXPIRE NX run in one MULTI/EXEC pipeline so a crash between
        them cannot leave a counter without expiry.

        Returns:
            New value after increment
        """
        client = self._ensure_connected()
        async with client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, ttl, nx=True)
            count, _ = await pipe.execute()
        return int(count)

    async def ttl(self, key: str) -> int:
        """
        Returns:
            TTL in seconds, -1 if no TTL, -2 if key doesn't exist
        """
        client = self._ensure_connected()
        return await client.ttl(key)

    # =========================================================================
    # UTILITY OPERATIONS
    # =========================================================================

    async def check_health(self) -> bool:
        """
        Check Redis connection health.
        """
        try:
            client = self._ensure_connected()
            return bool(await client.ping())
        except (RedisError, RuntimeError):
            return False

    @property
    def is_connected(self) -> bool:
        return self._is_connected
