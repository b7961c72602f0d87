"""Daily fixed-window rate limiter with durable-first, in-memory fallback.

Each client gets ``daily_limit`` admissions per window; the window ends at
the next midnight after the client's first request. Rollover is lazy: an
expired record is replaced on the client's next request, nothing sweeps.

Known gap: the read-modify-write against the store is not atomic, so two
concurrent requests from the same client at ``count == daily_limit - 1``
can both be admitted. The limiter is best-effort, not a hard guarantee.
"""

from __future__ import annotations

import hashlib
import logging
import math

from app.adapters.rate_limit.base import AbstractCounterStore, RateLimitResult, UsageRecord
from app.adapters.rate_limit.clock import SystemClock
from app.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


def hash_client_key(key: str) -> str:
    """Hash a client key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


class DailyRateLimiter:
    """Admit/deny decisions for a per-client daily quota.

    Owns the fallback store for the lifetime of the process; create one
    instance at startup and call :meth:`aclose` at shutdown.
    """

    def __init__(
        self,
        *,
        daily_limit: int,
        fallback: AbstractCounterStore,
        durable: AbstractCounterStore | None = None,
        clock: SystemClock | None = None,
        key_prefix: str = "rate_limit:",
    ) -> None:
        """Initialize the limiter.

        Args:
            daily_limit: Maximum admitted requests per window per client.
            fallback: In-process store used when ``durable`` fails.
            durable: Networked store tried first on every call (optional).
            clock: Time source; defaults to the system clock.
            key_prefix: Namespace prepended to client keys.

        Raises:
            ValueError: If daily_limit is invalid.
        """
        if daily_limit < 1:
            raise ValueError("daily_limit must be >= 1")

        self._limit = daily_limit
        self._fallback = fallback
        self._durable = durable
        self._clock = clock or SystemClock()
        self._key_prefix = key_prefix

    @property
    def daily_limit(self) -> int:
        return self._limit

    @property
    def has_durable_store(self) -> bool:
        return self._durable is not None

    def _build_allowed_result(self, *, count: int, reset_at: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=max(0, self._limit - count),
            reset_at=int(reset_at),
            retry_after_seconds=None,
        )

    def _build_blocked_result(self, *, now: float, reset_at: float) -> RateLimitResult:
        retry_after = max(0, int(math.ceil(reset_at - now)))
        return RateLimitResult(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(reset_at),
            retry_after_seconds=retry_after,
        )

    async def _decide(self, store: AbstractCounterStore, key: str) -> RateLimitResult:
        now = self._clock.now()
        reset_at = self._clock.next_window_boundary()

        record = await store.read(key)

        if record is None or record.is_expired(now):
            fresh = UsageRecord(count=1, reset_at=reset_at)
            await store.write(key, fresh, expire_at=reset_at)
            return self._build_allowed_result(count=fresh.count, reset_at=reset_at)

        if record.count >= self._limit:
            return self._build_blocked_result(now=now, reset_at=record.reset_at)

        # The window never moves on increment
        updated = UsageRecord(count=record.count + 1, reset_at=record.reset_at)
        await store.write(key, updated, expire_at=record.reset_at)
        return self._build_allowed_result(count=updated.count, reset_at=record.reset_at)

    async def check_and_consume(self, client_key: str) -> RateLimitResult:
        """Check the client's quota and consume one unit when admitted.

        Tries the durable store first; on StoreUnavailableError the same
        decision is made against the in-process store for this call only.

        Args:
            client_key: Client identifier (e.g., source address).

        Returns:
            RateLimitResult with the admission decision and remaining quota.

        Raises:
            ValueError: If client_key is empty.
        """
        if not client_key:
            raise ValueError("client_key must be a non-empty string")

        key = f"{self._key_prefix}{client_key}"

        if self._durable is None:
            return await self._decide(self._fallback, key)

        try:
            return await self._decide(self._durable, key)
        except StoreUnavailableError as exc:
            logger.warning(
                "rate_limit.store_degraded",
                extra={
                    "store": self._durable.name,
                    "fallback_store": self._fallback.name,
                    "key_hash": hash_client_key(client_key),
                    "error_code": exc.code,
                    "error_type": type(exc.__cause__).__name__ if exc.__cause__ else None,
                },
            )
            return await self._decide(self._fallback, key)

    async def aclose(self) -> None:
        """Close the durable store and drop fallback state."""

        if self._durable is not None:
            await self._durable.aclose()
        await self._fallback.aclose()
