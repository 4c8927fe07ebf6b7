"""OpenAI suggestion provider."""

from typing import Any

import openai
from openai import AsyncOpenAI

from spontaneity.adapters.llm.base import SuggestionProvider, parse_cards
from spontaneity.core.errors import LLMAppError, ProviderOverloadedError
from spontaneity.schemas.cards import CandidateCard


class OpenAIProvider(SuggestionProvider):
    """Calls OpenAI chat completions and parses a JSON array of cards.

    Uses the official OpenAI Python SDK with async support. SDK retries are
    disabled: a failed call simply contributes no cards.
    """

    name = "openai"
    persona = "You are a hyper-local travel concierge."

    def __init__(
        self,
        api_key: str | None,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 20.0,
        temperature: float = 0.7,
        max_tokens: int = 700,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: OpenAI API key; the provider is unavailable without one.
            model: Model name (e.g., "gpt-4o-mini").
            base_url: Optional custom base URL for an OpenAI-compatible API.
            timeout_seconds: Timeout for requests in seconds.
            temperature: Sampling temperature.
            max_tokens: Completion token cap.
        """
        self._api_key = api_key
        self.client = (
            AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout_seconds, max_retries=0)
            if api_key
            else None
        )
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @property
    def is_available(self) -> bool:
        return self.client is not None

    async def generate(self, prompt: str) -> list[CandidateCard]:
        if self.client is None:
            raise LLMAppError(code="provider_unavailable", message="OpenAI API key is not configured")

        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {
                    "role": "system",
                    "content": "Output a JSON array only. No extra text or markdown formatting.",
                },
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        try:
            response = await self.client.chat.completions.create(**request_params)
        except openai.RateLimitError as exc:
            raise ProviderOverloadedError(
                code="provider_rate_limited",
                message="openai signalled rate limiting",
                details={"provider": self.name, "http_status": 429},
            ) from exc
        except openai.APIStatusError as exc:
            raise LLMAppError(
                code="provider_http_error",
                message=f"openai returned HTTP {exc.status_code}",
                details={"provider": self.name, "http_status": exc.status_code},
            ) from exc
        except openai.APIError as exc:
            raise LLMAppError(
                code="provider_request_failed",
                message=f"openai request failed: {type(exc).__name__}",
                details={"provider": self.name},
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        return parse_cards(content, self.name)
