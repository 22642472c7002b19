# =============================================================================
# BARANGAY AUTH SERVICE - RATE LIMITER
# =============================================================================
# File: session/rate_limit.py
# Description: Fixed-window attempt limiter for login and registration
#              In-process store by default, Redis for multi-instance deployments
# =============================================================================

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Literal
import asyncio
import logging
import math
import time

from barangay_auth.core.config import Settings
from barangay_auth.core.exceptions import RateLimitExceeded
from barangay_auth.db.adapters.redis_adapter import RedisAdapter


logger = logging.getLogger(__name__)


CountOn = Literal["failure", "success"]


@dataclass(frozen=True)
class RateLimitPolicy:
    """
    Attributes:
        name: Namespace for keys ("login", "register")
        max_attempts: Counted attempts allowed per window
        window_seconds: Window length, starting at the first counted attempt
        count_on: Which outcomes are counted
    """
    name: str
    max_attempts: int
    window_seconds: int
    count_on: CountOn = "failure"


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: int = 0


@dataclass
class RateLimitState:
    count: int
    window_start: float


class RateLimiter(ABC):
    """
    ┌─────────────────────────────────────────────────────────────────────────┐
    │                    RATE LIMITER                                          │
    │  check() before the work, record() once the outcome is known            │
    └─────────────────────────────────────────────────────────────────────────┘

    A key is rejected once its counted attempts reach ``max_attempts`` inside
    the current window. The window resets when more than ``window_seconds``
    have passed since it opened.
    """

    def __init__(self, policy: RateLimitPolicy):
        self.policy = policy

    def counts(self, success: bool) -> bool:
        """Whether an outcome is counted under this policy."""
        return success if self.policy.count_on == "success" else not success

    @abstractmethod
    async def check(self, key: str) -> RateLimitDecision:
        """Decide whether another attempt for ``key`` may proceed."""

    @abstractmethod
    async def record(self, key: str, success: bool) -> None:
        """Register the outcome of an attempt for ``key``."""

    @abstractmethod
    async def reset(self, key: str) -> None:
        """Forget all attempts for ``key``."""

    async def enforce(self, key: str) -> None:
        """
        Raises:
            RateLimitExceeded: If ``key`` is currently limited
        """
        decision = await self.check(key)
        if not decision.allowed:
            logger.warning(
                f"Rate limit hit: policy={self.policy.name} "
                f"retry_after={decision.retry_after}s"
            )
            raise RateLimitExceeded(retry_after=decision.retry_after)


class InMemoryRateLimiter(RateLimiter):
    """
    Process-local limiter.

    State is a dict guarded by an asyncio.Lock, so it is only correct for a
    single worker process. The clock is injectable for tests.
    """

    def __init__(
        self,
        policy: RateLimitPolicy,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(policy)
        self._clock = clock
        self._state: Dict[str, RateLimitState] = {}
        self._lock = asyncio.Lock()

    def _current(self, key: str, now: float) -> RateLimitState:
        state = self._state.get(key)
        if state is None or now - state.window_start > self.policy.window_seconds:
            state = RateLimitState(count=0, window_start=now)
            self._state[key] = state
        return state

    async def check(self, key: str) -> RateLimitDecision:
        async with self._lock:
            now = self._clock()
            state = self._current(key, now)
            if state.count >= self.policy.max_attempts:
                remaining = self.policy.window_seconds - (now - state.window_start)
                return RateLimitDecision(allowed=False, retry_after=max(1, math.ceil(remaining)))
            return RateLimitDecision(allowed=True)

    async def record(self, key: str, success: bool) -> None:
        if not self.counts(success):
            return
        async with self._lock:
            state = self._current(key, self._clock())
            state.count += 1

    async def reset(self, key: str) -> None:
        async with self._lock:
            self._state.pop(key, None)


class RedisRateLimiter(RateLimiter):
    """
    Limiter whose counters live in Redis, shared by every instance.

    Each key is one counter with a TTL equal to the window, opened by the
    first counted attempt.
    """

    KEY_PREFIX = "ratelimit:"

    def __init__(self, policy: RateLimitPolicy, redis: RedisAdapter):
        super().__init__(policy)
        self._redis = redis

    def _key(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{self.policy.name}:{key}"

    async def check(self, key: str) -> RateLimitDecision:
        redis_key = self._key(key)
        raw = await self._redis.get(redis_key)
        count = int(raw) if raw else 0
        if count >= self.policy.max_attempts:
            ttl = await self._redis.ttl(redis_key)
            retry_after = ttl if ttl > 0 else self.policy.window_seconds
            return RateLimitDecision(allowed=False, retry_after=retry_after)
        return RateLimitDecision(allowed=True)

    async def record(self, key: str, success: bool) -> None:
        if not self.counts(success):
            return
        await self._redis.incr_with_expiry(self._key(key), self.policy.window_seconds)

    async def reset(self, key: str) -> None:
        await self._redis.delete(self._key(key))


# =============================================================================
# FACTORY
# =============================================================================

def login_policy(settings: Settings) -> RateLimitPolicy:
    return RateLimitPolicy(
        name="login",
        max_attempts=settings.login_max_attempts,
        window_seconds=settings.login_window_seconds,
        count_on="failure",
    )


def register_policy(settings: Settings) -> RateLimitPolicy:
    return RateLimitPolicy(
        name="register",
        max_attempts=settings.register_max_attempts,
        window_seconds=settings.register_window_seconds,
        count_on="success",
    )


def build_rate_limiter(
    policy: RateLimitPolicy,
    settings: Settings,
    redis: RedisAdapter | None = None,
) -> RateLimiter:
    """
    Create the limiter for a policy on the configured backend.

    Args:
        policy: Limits to enforce
        settings: Application settings (selects the backend)
        redis: Connected adapter, required for the redis backend
    """
    if settings.rate_limit_backend == "redis":
        if redis is None:
            raise ValueError("rate_limit_backend=redis requires a Redis adapter")
        return RedisRateLimiter(policy, redis)
    return InMemoryRateLimiter(policy)
