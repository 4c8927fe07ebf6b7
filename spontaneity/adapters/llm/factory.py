"""Factory for the ordered list of suggestion providers."""

from spontaneity.adapters.llm.base import SuggestionProvider
from spontaneity.adapters.llm.gemini_client import GeminiProvider
from spontaneity.adapters.llm.openai_client import OpenAIProvider
from spontaneity.core.config import LLMSettings, settings
from spontaneity.core.errors import ValidationAppError

SUPPORTED_PROVIDERS = ("openai", "gemini")


def parse_provider_names(value: str) -> list[str]:
    """Split the comma-separated provider list, dropping blanks and duplicates."""
    names: list[str] = []
    for raw in value.split(","):
        name = raw.strip().lower()
        if name and name not in names:
            names.append(name)
    return names


def create_provider(name: str, llm: LLMSettings) -> SuggestionProvider:
    """Instantiate one provider from configuration.

    Providers without an API key are still created; they report
    ``is_available=False`` and are skipped at generation time.

    Raises:
        ValidationAppError: If the provider name is unknown.
    """
    if name == "openai":
        return OpenAIProvider(
            api_key=llm.openai_api_key,
            model=llm.openai_model,
            base_url=llm.openai_base_url,
            timeout_seconds=llm.timeout_seconds,
            temperature=llm.temperature,
            max_tokens=llm.max_output_tokens,
        )

    if name == "gemini":
        return GeminiProvider(
            api_key=llm.gemini_api_key,
            model=llm.gemini_model,
            timeout_seconds=llm.timeout_seconds,
            temperature=llm.temperature,
            max_output_tokens=llm.max_output_tokens,
        )

    raise ValidationAppError(
        code="llm_unknown_provider",
        message=(
            f"Unknown LLM provider: '{name}'. Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
        ),
    )


def create_providers(llm: LLMSettings | None = None) -> list[SuggestionProvider]:
    """Build providers in priority order (primary first)."""
    llm = llm or settings.llm
    return [create_provider(name, llm) for name in parse_provider_names(llm.providers)]
