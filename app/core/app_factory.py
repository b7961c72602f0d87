"""Application factory for the FastAPI app.

Centralizes app construction (metadata, lifecycle, middleware, handlers,
routers) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.adapters.llm.factory import create_llm_client
from app.api.routes import health_router, seo_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import build_rate_limiter
from app.services.analysis_service import AnalysisService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Own the process-wide rate limiter and analysis service.

    A misconfigured LLM provider fails startup rather than the first request.
    """

    app.state.analysis_service = AnalysisService(llm=create_llm_client())
    limiter = build_rate_limiter(settings)
    app.state.rate_limiter = limiter
    logger.info("app.startup", extra={"app_env": settings.app_env})
    try:
        yield
    finally:
        await limiter.aclose()
        logger.info("app.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="SEO Checker API",
        description=(
            "Scores an article's title, headings and opening body text for SEO "
            "with an LLM and returns a 0-100 score, a written analysis and "
            "improvement suggestions. Each client may run a limited number of "
            "analyses per day."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(seo_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
