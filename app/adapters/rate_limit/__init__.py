"""Rate limiting adapters.

The daily limiter decides against a durable Redis counter store and falls
back to an in-process store when Redis cannot be reached.
"""

from app.adapters.rate_limit.base import (
    AbstractCounterStore,
    RateLimitResult,
    UsageRecord,
)
from app.adapters.rate_limit.clock import SystemClock
from app.adapters.rate_limit.daily import DailyRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.adapters.rate_limit.redis_store import RedisCounterStore

__all__ = [
    "AbstractCounterStore",
    "DailyRateLimiter",
    "InMemoryCounterStore",
    "RateLimitResult",
    "RedisCounterStore",
    "SystemClock",
    "UsageRecord",
]
