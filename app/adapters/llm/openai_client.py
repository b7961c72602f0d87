"""OpenAI chat-completions adapter returning parsed JSON objects."""

import json
import logging
from typing import Any

from openai import AsyncOpenAI

from app.adapters.llm.base import AbstractLLMClient

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "Output JSON only. No extra text or markdown formatting."

DEFAULT_TEMPERATURE = 0.2

# Sampling options forwarded to the API; anything else in kwargs is dropped
PASSTHROUGH_OPTIONS = ("max_tokens", "top_p", "frequency_penalty", "presence_penalty", "seed")


def _decode_object(content: str | None) -> dict[str, Any]:
    if content is None or not content.strip():
        raise RuntimeError("LLM returned empty response")

    try:
        parsed = json.loads(content.strip())
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"LLM returned invalid JSON: {exc}") from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(f"LLM returned JSON {type(parsed).__name__}, expected an object")
    return parsed


class OpenAIClient(AbstractLLMClient):
    """Async OpenAI client asking for a single JSON object per prompt."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
    ) -> None:
        """
        Args:
            api_key: OpenAI API key.
            model: Chat model name (e.g. "gpt-4o-mini").
            base_url: Optional OpenAI-compatible endpoint.
            timeout_seconds: Per-request timeout.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model

    def _build_request(
        self,
        prompt: str,
        system_prompt: str | None,
        json_mode: bool,
        options: dict[str, Any],
    ) -> dict[str, Any]:
        request: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt or DEFAULT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": options.get("temperature", DEFAULT_TEMPERATURE),
        }
        if json_mode:
            request["response_format"] = {"type": "json_object"}
        request.update({k: options[k] for k in PASSTHROUGH_OPTIONS if k in options})
        return request

    async def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        json_mode: bool = True,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Send one chat completion and parse its content as a JSON object.

        Args:
            prompt: User message.
            system_prompt: System message; defaults to a JSON-only instruction.
            json_mode: Request ``response_format={"type": "json_object"}``.
            **kwargs: ``temperature`` plus the options in PASSTHROUGH_OPTIONS.

        Raises:
            RuntimeError: API failure, empty content, invalid JSON or a non-object payload.
        """
        request = self._build_request(prompt, system_prompt, json_mode, kwargs)

        try:
            response = await self.client.chat.completions.create(**request)
            choice = response.choices[0]
        except Exception as exc:
            raise RuntimeError(f"OpenAI API error: {exc}") from exc

        logger.debug(
            "llm.completion_received",
            extra={"model": self.model, "finish_reason": getattr(choice, "finish_reason", None)},
        )
        return _decode_object(choice.message.content)
