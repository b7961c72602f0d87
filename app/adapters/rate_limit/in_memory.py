"""In-process counter store used when the durable store is unreachable.

Notes:
- Per-process only: running multiple workers gives each its own counters.
- No native expiry: the limiter compares ``reset_at`` with the clock, and
  stale entries stay in the mapping until the same key is written again.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading

from app.adapters.rate_limit.base import AbstractCounterStore, UsageRecord


class InMemoryCounterStore(AbstractCounterStore):
    """Counter store backed by a dict keyed by client key."""

    name = "memory"

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: dict[str, UsageRecord] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    async def read(self, key: str) -> UsageRecord | None:
        with self._lock:
            return self._records.get(key)

    async def write(self, key: str, record: UsageRecord, expire_at: float) -> None:
        # expire_at is ignored; expiry is decided by reset_at comparison
        with self._lock:
            self._records[key] = record

    def clear(self) -> None:
        """Drop every record (used on shutdown and in tests)."""

        with self._lock:
            self._records.clear()

    async def aclose(self) -> None:
        self.clear()
