from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.seo import router as seo_router

__all__ = ["health_router", "seo_router"]
