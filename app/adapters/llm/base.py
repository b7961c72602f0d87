from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
    """Interface for LLM clients that produce structured JSON outputs."""

    @abstractmethod
    async def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        json_mode: bool = True,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Generate a JSON object from the model.

        Args:
            prompt: User prompt to send to the model.
            system_prompt: Optional system message; providers fall back to a
                generic "JSON only" instruction when omitted.
            json_mode: Ask the provider to enforce a JSON object response.
            **kwargs: Provider-specific options (e.g., temperature, max_tokens).

        Returns:
            dict[str, Any]: Parsed JSON object returned by the model.

        Raises:
            RuntimeError: If the provider call fails or the response is not a JSON object.
        """
        ...
