"""LLM clients used to score articles."""

from app.adapters.llm.base import AbstractLLMClient
from app.adapters.llm.factory import SUPPORTED_PROVIDERS, create_llm_client
from app.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "OpenAIClient",
    "SUPPORTED_PROVIDERS",
    "create_llm_client",
]
