"""Build the LLM client the analysis service talks to."""

import logging

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.openai_client import OpenAIClient
from app.core.config import LLMSettings, settings
from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai",)


def create_llm_client(llm_settings: LLMSettings | None = None) -> AbstractLLMClient:
    """Instantiate the client for ``LLM_PROVIDER``.

    Raises:
        ValidationAppError: Unknown provider or missing ``LLM_API_KEY``.
    """
    cfg = llm_settings or settings.llm
    provider = cfg.provider.lower()

    if provider not in SUPPORTED_PROVIDERS:
        raise ValidationAppError(
            code="llm_unknown_provider",
            message=(
                f"Unknown LLM provider '{provider}'. "
                f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
            ),
        )
    if not cfg.api_key:
        raise ValidationAppError(
            code="llm_missing_api_key",
            message="LLM_API_KEY must be set to score articles",
        )

    logger.info(
        "llm.configured",
        extra={"provider": provider, "model": cfg.model, "custom_base_url": bool(cfg.base_url)},
    )
    return OpenAIClient(
        api_key=cfg.api_key,
        model=cfg.model,
        base_url=cfg.base_url,
        timeout_seconds=cfg.timeout_seconds,
    )
