"""Redis-backed counter store (works with Vercel KV / Upstash Redis URLs).

Records are stored as JSON ``{"count": int, "resetTime": epoch_ms}`` and set
with ``EXAT`` so Redis drops them at the end of the window on its own.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, TypeVar

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.adapters.rate_limit.base import AbstractCounterStore, UsageRecord
from app.core.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def encode_record(record: UsageRecord) -> str:
    return json.dumps(
        {"count": record.count, "resetTime": int(record.reset_at * 1000)},
        separators=(",", ":"),
    )


def decode_record(raw: bytes | str) -> UsageRecord:
    """Parse a stored value into a UsageRecord.

    Raises:
        ValueError: If the payload is not a valid record.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    data: Any = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("record payload must be a JSON object")

    count = data.get("count")
    reset_at_ms = data.get("resetTime", data.get("resetAt"))
    if isinstance(count, bool) or not isinstance(count, int) or count < 0:
        raise ValueError("record count must be a non-negative integer")
    if isinstance(reset_at_ms, bool) or not isinstance(reset_at_ms, (int, float)):
        raise ValueError("record resetTime must be a number")

    return UsageRecord(count=count, reset_at=reset_at_ms / 1000)


class RedisCounterStore(AbstractCounterStore):
    """Durable counter store using ``redis.asyncio``.

    Every call is bounded by ``timeout_seconds``; slow or failing calls raise
    StoreUnavailableError so the limiter can fall back instead of blocking.
    """

    name = "redis"

    def __init__(self, client: Redis, *, timeout_seconds: float = 0.3) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        self._client = client
        self._timeout = timeout_seconds

    @classmethod
    def from_url(cls, url: str, *, timeout_seconds: float = 0.3) -> "RedisCounterStore":
        client = Redis.from_url(
            url,
            socket_timeout=timeout_seconds,
            socket_connect_timeout=timeout_seconds,
        )
        return cls(client, timeout_seconds=timeout_seconds)

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except (RedisError, OSError, asyncio.TimeoutError) as exc:
            raise StoreUnavailableError(
                code="store_unavailable",
                message=f"Counter store {operation} failed",
                details={"context": {"error_type": type(exc).__name__}},
            ) from exc

    async def read(self, key: str) -> UsageRecord | None:
        raw = await self._call("read", self._client.get(key))
        if raw is None:
            return None

        try:
            return decode_record(raw)
        except (ValueError, UnicodeDecodeError) as exc:
            # The next write for this key replaces the bad value
            logger.warning(
                "rate_limit.store_record_invalid",
                extra={"store": self.name, "error_msg": str(exc)},
            )
            return None

    async def write(self, key: str, record: UsageRecord, expire_at: float) -> None:
        await self._call(
            "write",
            self._client.set(key, encode_record(record), exat=int(expire_at)),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
