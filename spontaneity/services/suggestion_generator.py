"""Concurrent suggestion generation across LLM providers.

Every available provider that is not cooling down gets its own prompt and is
called concurrently. A provider that signals rate limiting starts its
cooldown; any provider failure only removes that provider's cards. Results
are concatenated in provider priority order so downstream deduplication is
deterministic.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field

from spontaneity.adapters.llm.base import SuggestionProvider
from spontaneity.core.errors import LLMAppError, ProviderOverloadedError
from spontaneity.schemas.cards import CandidateCard, GenerationContext
from spontaneity.services.cooldown_registry import ProviderCooldownRegistry

logger = logging.getLogger(__name__)

DEFAULT_TONE = "Suggest one-of-a-kind local experiences that feel spontaneous."


def build_prompt(
    provider: SuggestionProvider,
    context: GenerationContext,
    *,
    tone: str = DEFAULT_TONE,
    context_limit: int = 12,
) -> str:
    """Build the card generation prompt for one provider.

    Args:
        provider: Provider whose persona opens the prompt.
        context: Location, mood, weather and nearby data for the request.
        tone: Tenant-specific tone guidance.
        context_limit: Maximum number of nearby items embedded.

    Returns:
        Formatted prompt string.
    """
    weather = context.weather.model_dump(exclude_none=True) if context.weather else {}
    nearby = [
        datum.model_dump(mode="json", exclude_none=True) for datum in context.geo_data[:context_limit]
    ]
    return f"""
{provider.persona}
Tone: {tone}
Traveler coordinates: {context.lat:.4f}, {context.lng:.4f}
Traveler mood: {context.mood}
Weather: {json.dumps(weather)}
Nearby context: {json.dumps(nearby, ensure_ascii=False)}

Create 4 upbeat suggestion cards as a JSON array.
Each card MUST be an object with ONLY these keys:
  "title" - short headline (string)
  "description" - 1-2 sentence summary rooted in nearby context (string)
  "vibeTags" - array of 2-4 short mood descriptors (array of strings)
  "navigationLink" - https URL for more info or empty string if unavailable (string)

Return a valid JSON array. No markdown. No additional commentary.
""".strip()


@dataclass
class GenerationResult:
    """Merged candidates plus the degradations seen while producing them."""

    cards: list[CandidateCard] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    per_provider: dict[str, int] = field(default_factory=dict)


class SuggestionGenerator:
    """Fans out one request to every eligible provider.

    Args:
        providers: Providers in priority order (primary first).
        cooldowns: Registry consulted before, and updated after, each call.
        tenant_tones: Tone guidance keyed by tenant id.
        context_limit: Maximum nearby items embedded in each prompt.
    """

    def __init__(
        self,
        providers: list[SuggestionProvider],
        cooldowns: ProviderCooldownRegistry,
        *,
        tenant_tones: dict[str, str] | None = None,
        context_limit: int = 12,
    ) -> None:
        self.providers = list(providers)
        self.cooldowns = cooldowns
        self._tenant_tones = dict(tenant_tones or {})
        self._context_limit = context_limit

    @property
    def provider_names(self) -> list[str]:
        return [provider.name for provider in self.providers]

    def tone_for(self, tenant_id: str) -> str:
        return self._tenant_tones.get(tenant_id, DEFAULT_TONE)

    async def generate(self, tenant_id: str, context: GenerationContext) -> GenerationResult:
        """Generate candidates from all eligible providers.

        Never raises for provider failures; they are reported in
        ``GenerationResult.errors``.
        """
        result = GenerationResult()
        tone = self.tone_for(tenant_id)

        outcomes = await asyncio.gather(
            *(self._run_provider(provider, tenant_id, context, tone, result.errors) for provider in self.providers)
        )

        for provider, cards in zip(self.providers, outcomes):
            result.per_provider[provider.name] = len(cards)
            result.cards.extend(cards)

        logger.info(
            "generation.completed",
            extra={
                "tenant_id": tenant_id,
                "per_provider": result.per_provider,
                "error_count": len(result.errors),
            },
        )
        return result

    async def _run_provider(
        self,
        provider: SuggestionProvider,
        tenant_id: str,
        context: GenerationContext,
        tone: str,
        errors: list[str],
    ) -> list[CandidateCard]:
        if not provider.is_available:
            logger.debug("provider.unavailable", extra={"provider": provider.name})
            return []

        if self.cooldowns.is_cooling_down(provider.name):
            logger.warning(
                "provider.skipped_cooldown",
                extra={
                    "provider": provider.name,
                    "cooldown_until": self.cooldowns.cooldown_until(provider.name),
                },
            )
            errors.append(f"{provider.name}: skipped, cooling down")
            return []

        prompt = build_prompt(provider, context, tone=tone, context_limit=self._context_limit)

        try:
            cards = await provider.generate(prompt)
        except ProviderOverloadedError as exc:
            self.cooldowns.trigger(provider.name)
            logger.warning("provider.rate_limited", extra={"provider": provider.name, "tenant_id": tenant_id})
            errors.append(f"{provider.name}: {exc.message}")
            return []
        except LLMAppError as exc:
            logger.warning(
                "provider.failed",
                extra={"provider": provider.name, "error_code": exc.code, "tenant_id": tenant_id},
            )
            errors.append(f"{provider.name}: {exc.message}")
            return []
        except Exception as exc:
            logger.warning(
                "provider.failed",
                exc_info=exc,
                extra={"provider": provider.name, "error_type": type(exc).__name__, "tenant_id": tenant_id},
            )
            errors.append(f"{provider.name}: {type(exc).__name__}")
            return []

        logger.info("provider.completed", extra={"provider": provider.name, "candidates": len(cards)})
        return cards
