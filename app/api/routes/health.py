from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check.

    Also reports which counter store the rate limiter tries first
    ("redis" when KV_URL is configured, otherwise "memory").
    """

    limiter = getattr(request.app.state, "rate_limiter", None)
    store = None
    if limiter is not None:
        store = "redis" if limiter.has_durable_store else "memory"

    return {"status": "ok", "rate_limit_store": store}
