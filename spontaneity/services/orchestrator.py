"""End-to-end composition of one spontaneous cards response."""

from __future__ import annotations

import logging
import time
from typing import Any

from spontaneity.schemas.cards import (
    AICard,
    Diagnostics,
    GenerationContext,
    SpontaneousCardsResponse,
    SuggestionCard,
)
from spontaneity.services.card_normalizer import FALLBACK_SOURCE, CardNormalizer, FallbackContext
from spontaneity.services.geo_context import GeoContextFetcher
from spontaneity.services.response_cache import ResponseCache, build_fingerprint
from spontaneity.services.suggestion_generator import SuggestionGenerator

logger = logging.getLogger(__name__)


class AggregationOrchestrator:
    """Cache check, geo fan-out, generation and normalization for one request.

    Args:
        geo_fetcher: Fetches nearby places, events and weather.
        generator: Fans the request out to LLM providers.
        normalizer: Validates candidates and synthesizes fallbacks.
        cache: Response cache keyed by request fingerprint.
        cache_ttl_seconds: How long a composed payload is reused.
    """

    def __init__(
        self,
        geo_fetcher: GeoContextFetcher,
        generator: SuggestionGenerator,
        normalizer: CardNormalizer,
        cache: ResponseCache,
        *,
        cache_ttl_seconds: float = 300,
    ) -> None:
        self.geo_fetcher = geo_fetcher
        self.generator = generator
        self.normalizer = normalizer
        self.cache = cache
        self.cache_ttl_seconds = cache_ttl_seconds

    async def run(self, tenant_id: str, lat: float, lng: float, mood: str) -> dict[str, Any]:
        """Return the response payload, from cache when a fresh one exists.

        Args:
            tenant_id: Resolved tenant; part of the cache key and prompt tone.
            lat: Latitude in degrees.
            lng: Longitude in degrees.
            mood: Requested mood.

        Returns:
            dict: JSON-ready payload with camelCase keys.
        """
        fingerprint = build_fingerprint(tenant_id, lat, lng, mood)

        async def compute() -> dict[str, Any]:
            return await self._compose(tenant_id, lat, lng, mood)

        return await self.cache.get_or_compute(fingerprint, self.cache_ttl_seconds, compute)

    async def _compose(self, tenant_id: str, lat: float, lng: float, mood: str) -> dict[str, Any]:
        start = time.perf_counter()

        geo = await self.geo_fetcher.fetch(lat, lng)
        context = GenerationContext(lat=lat, lng=lng, mood=mood, weather=geo.weather, geo_data=geo.data)
        generation = await self.generator.generate(tenant_id, context)

        cards = self.normalizer.normalize(
            generation.cards,
            FallbackContext(mood=mood, tenant_id=tenant_id, geo_data=geo.data),
        )

        response = SpontaneousCardsResponse(
            ai_cards=[self._to_public(card) for card in cards],
            sources=self._count_sources(cards),
            weather=geo.weather,
            combined_data_count=len(geo.data),
            diagnostics=self._diagnostics(geo.errors + generation.errors),
        )

        logger.info(
            "cards.composed",
            extra={
                "tenant_id": tenant_id,
                "card_count": len(cards),
                "sources": response.sources,
                "error_count": len(response.diagnostics.errors),
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return response.model_dump(mode="json", by_alias=True)

    def _count_sources(self, cards: list[SuggestionCard]) -> dict[str, int]:
        counts = {name: 0 for name in self.generator.provider_names}
        counts[FALLBACK_SOURCE] = 0
        for card in cards:
            counts[card.source] = counts.get(card.source, 0) + 1
        return counts

    def _diagnostics(self, errors: list[str]) -> Diagnostics:
        flags = {
            f"{name}RateLimited": self.generator.cooldowns.is_cooling_down(name)
            for name in self.generator.provider_names
        }
        return Diagnostics(errors=errors, **flags)

    @staticmethod
    def _to_public(card: SuggestionCard) -> AICard:
        return AICard(
            title=card.title,
            description=card.description,
            vibe_tags=card.vibe_tags,
            navigation_link=card.navigation_link,
        )
