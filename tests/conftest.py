"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any app import so the global
settings object is built from them and no .env file is loaded.
"""

import os

os.environ["TESTING"] = "true"

os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("LLM_MODEL", "gpt-4o-mini")
os.environ.setdefault("LLM_API_KEY", "test-key-123")
os.environ.setdefault("APP_API_KEY_REQUIRED", "false")
os.environ.setdefault("APP_RATE_LIMIT_DAILY_LIMIT", "5")
os.environ.pop("KV_URL", None)

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from app.adapters.rate_limit.clock import SystemClock
from app.adapters.rate_limit.daily import DailyRateLimiter
from app.adapters.rate_limit.in_memory import InMemoryCounterStore

# 2025-03-10 12:00:00 UTC
NOON_UTC = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc).timestamp()
NEXT_MIDNIGHT_UTC = datetime(2025, 3, 11, 0, 0, tzinfo=timezone.utc).timestamp()


@pytest.fixture
def time_source() -> Mock:
    """Controllable time source; set ``.return_value`` to move the clock."""
    return Mock(return_value=NOON_UTC)


@pytest.fixture
def clock(time_source: Mock) -> SystemClock:
    return SystemClock(time_source=time_source, tz=timezone.utc)


@pytest.fixture
def memory_store() -> InMemoryCounterStore:
    return InMemoryCounterStore()


@pytest.fixture
def limiter(clock: SystemClock, memory_store: InMemoryCounterStore) -> DailyRateLimiter:
    return DailyRateLimiter(daily_limit=5, fallback=memory_store, clock=clock)


@pytest.fixture
def sample_llm_output() -> dict:
    return {
        "score": 72,
        "analysis": "Title length is good.\nHeadings lack the main keyword.",
        "improvements": [
            "Move the main keyword to the start of the title",
            "Add the keyword to at least one H2",
            "Shorten the opening paragraph",
        ],
    }


@pytest.fixture
def mock_llm(sample_llm_output: dict) -> AsyncMock:
    llm = AsyncMock()
    llm.generate_json = AsyncMock(return_value=sample_llm_output)
    return llm
