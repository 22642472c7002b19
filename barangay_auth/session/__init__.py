# =============================================================================
# SESSION MODULE INITIALIZATION
# =============================================================================
# File: session/__init__.py
# Description: Session module exports
# =============================================================================

from barangay_auth.session.models import ClientContext, SessionInfo, SessionList
from barangay_auth.session.manager import SessionManager
from barangay_auth.session.rate_limit import (
    RateLimiter,
    RateLimitPolicy,
    RateLimitDecision,
    InMemoryRateLimiter,
    RedisRateLimiter,
    build_rate_limiter,
    login_policy,
    register_policy,
)

__all__ = [
    "ClientContext",
    "SessionInfo",
    "SessionList",
    "SessionManager",
    "RateLimiter",
    "RateLimitPolicy",
    "RateLimitDecision",
    "InMemoryRateLimiter",
    "RedisRateLimiter",
    "build_rate_limiter",
    "login_policy",
    "register_policy",
]
