"""Counter store interface and rate limit value types.

The limiter depends on this abstraction so the durable backend (Redis) and
the in-process fallback are interchangeable per call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class UsageRecord:
    """Admitted request count for one client within one daily window.

    Attributes:
        count: Requests admitted since the window started.
        reset_at: UNIX epoch seconds at which the window ends.
    """

    count: int
    reset_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.reset_at


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a check-and-consume operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractCounterStore(ABC):
    """Interface for usage record storage backends."""

    name: str = "abstract"

    @abstractmethod
    async def read(self, key: str) -> UsageRecord | None:
        """Return the stored record for ``key`` or None when absent.

        Raises:
            StoreUnavailableError: If the backend cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    async def write(self, key: str, record: UsageRecord, expire_at: float) -> None:
        """Store ``record`` under ``key``.

        Args:
            key: Namespaced client key.
            record: Record to store, replacing any previous value.
            expire_at: UNIX epoch seconds after which the backend may drop
                the record. Backends without native expiry ignore it.

        Raises:
            StoreUnavailableError: If the backend cannot be reached.
        """
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release backend resources (connections, pools)."""
        return None
