"""Rate limiting wiring for the HTTP layer.

This module builds the process-wide limiter from settings, derives the
client key from request metadata, and turns a denial into a 429 error.

Rate limiting strategy:
- Daily window per client, ending at midnight (see DailyRateLimiter).
- Client key is the first address in the forwarded-for header; requests
  without it share the "unknown" bucket.
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from fastapi import Request

from app.adapters.rate_limit.clock import SystemClock
from app.adapters.rate_limit.daily import DailyRateLimiter, hash_client_key
from app.adapters.rate_limit.in_memory import InMemoryCounterStore
from app.adapters.rate_limit.base import RateLimitResult
from app.adapters.rate_limit.redis_store import RedisCounterStore
from app.core.config import Settings, settings
from app.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

RATE_LIMIT_MESSAGE = "Daily analysis limit reached. Please try again tomorrow."


def build_rate_limiter(cfg: Settings | None = None) -> DailyRateLimiter:
    """Construct the limiter and its stores from configuration.

    Args:
        cfg: Settings to use; defaults to the global settings.

    Returns:
        DailyRateLimiter with a Redis durable store when KV_URL is set.
    """

    cfg = cfg or settings
    tz = ZoneInfo(cfg.app.rate_limit_timezone) if cfg.app.rate_limit_timezone else None

    durable = None
    if cfg.store.url:
        durable = RedisCounterStore.from_url(
            cfg.store.url,
            timeout_seconds=cfg.store.timeout_ms / 1000,
        )

    logger.info(
        "rate_limit.configured",
        extra={
            "daily_limit": cfg.app.rate_limit_daily_limit,
            "durable_store": durable.name if durable else None,
            "timezone": cfg.app.rate_limit_timezone or "local",
            "store_timeout_ms": cfg.store.timeout_ms,
        },
    )

    return DailyRateLimiter(
        daily_limit=cfg.app.rate_limit_daily_limit,
        fallback=InMemoryCounterStore(),
        durable=durable,
        clock=SystemClock(tz=tz),
        key_prefix=cfg.store.key_prefix,
    )


def get_rate_limiter(request: Request) -> DailyRateLimiter:
    """FastAPI dependency returning the limiter created at startup."""

    return request.app.state.rate_limiter


def resolve_client_key(request: Request) -> str:
    """Derive the rate limit key from request transport metadata.

    Uses the first (client-most) entry of the configured forwarded-for
    header. Falls back to "unknown" when the header is absent or empty.
    """

    raw = request.headers.get(settings.app.client_ip_header)
    if not raw:
        return UNKNOWN_CLIENT

    first_hop = raw.split(",")[0].strip()
    return first_hop or UNKNOWN_CLIENT


async def enforce_rate_limit(request: Request, limiter: DailyRateLimiter) -> RateLimitResult:
    """Consume one unit of the requester's daily quota.

    Args:
        request: FastAPI request.
        limiter: Process-wide limiter.

    Returns:
        RateLimitResult for the admitted request.

    Raises:
        RateLimitAppError: 429 when the daily quota is exhausted.
    """

    key = resolve_client_key(request)
    key_hash = hash_client_key(key)

    result = await limiter.check_and_consume(key)
    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "reset_at": result.reset_at,
            },
        )
        return result

    retry_after = result.retry_after_seconds or 0
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
            "retry_after_s": retry_after,
        },
    )

    headers: dict[str, str] = {}
    if settings.app.rate_limit_include_headers:
        headers["Retry-After"] = str(retry_after)
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message=RATE_LIMIT_MESSAGE,
        details={"limit": result.limit, "remaining": 0, "reset_at": result.reset_at},
        headers=headers or None,
    )
