"""LLM adapter layer - suggestion providers behind one interface."""

from spontaneity.adapters.llm.base import SuggestionProvider, parse_cards
from spontaneity.adapters.llm.factory import create_provider, create_providers
from spontaneity.adapters.llm.gemini_client import GeminiProvider
from spontaneity.adapters.llm.openai_client import OpenAIProvider

__all__ = [
    "GeminiProvider",
    "OpenAIProvider",
    "SuggestionProvider",
    "create_provider",
    "create_providers",
    "parse_cards",
]
