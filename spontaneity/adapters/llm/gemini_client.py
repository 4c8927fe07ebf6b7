"""Google Gemini suggestion provider via the google-genai SDK."""

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from spontaneity.adapters.llm.base import SuggestionProvider, parse_cards
from spontaneity.core.errors import LLMAppError, ProviderOverloadedError
from spontaneity.schemas.cards import CandidateCard


class GeminiProvider(SuggestionProvider):
    """Gemini provider using JSON response mode."""

    name = "gemini"
    persona = "You are a spontaneous travel planner."

    def __init__(
        self,
        api_key: str | None,
        model: str,
        timeout_seconds: float = 20.0,
        temperature: float = 0.7,
        max_output_tokens: int = 700,
    ) -> None:
        self._client = (
            genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(timeout_seconds * 1000)),
            )
            if api_key
            else None
        )
        self._model = model
        self._config = types.GenerateContentConfig(
            temperature=temperature,
            top_p=0.9,
            max_output_tokens=max_output_tokens,
            response_mime_type="application/json",
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    async def generate(self, prompt: str) -> list[CandidateCard]:
        if self._client is None:
            raise LLMAppError(code="provider_unavailable", message="Gemini API key is not configured")

        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=self._config,
            )
        except genai_errors.APIError as exc:
            if exc.code == 429:
                raise ProviderOverloadedError(
                    code="provider_rate_limited",
                    message="gemini signalled rate limiting",
                    details={"provider": self.name, "http_status": 429},
                ) from exc
            raise LLMAppError(
                code="provider_http_error",
                message=f"gemini returned HTTP {exc.code}",
                details={"provider": self.name, "http_status": exc.code},
            ) from exc

        return parse_cards(response.text, self.name)
