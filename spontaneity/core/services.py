"""Process-wide service graph and background housekeeping.

The orchestrator and the state it depends on (cooldowns, response cache)
are built lazily from settings and cached in-module so they survive across
requests. Routes receive the orchestrator through ``get_orchestrator``,
which tests replace with ``app.dependency_overrides``.
"""

from __future__ import annotations

import asyncio
import logging

from spontaneity.adapters.cache.in_memory import InMemoryCacheStore
from spontaneity.adapters.cooldown.in_memory import InMemoryCooldownStore
from spontaneity.adapters.geo import EventbriteSource, MeetupSource, OpenWeatherSource, OverpassSource
from spontaneity.adapters.llm.factory import create_providers
from spontaneity.core.config import Settings, settings
from spontaneity.core.rate_limit import get_rate_limiter
from spontaneity.services.card_normalizer import CardNormalizer
from spontaneity.services.cooldown_registry import ProviderCooldownRegistry
from spontaneity.services.geo_context import GeoContextFetcher
from spontaneity.services.orchestrator import AggregationOrchestrator
from spontaneity.services.response_cache import ResponseCache
from spontaneity.services.suggestion_generator import SuggestionGenerator

logger = logging.getLogger(__name__)

_orchestrator: AggregationOrchestrator | None = None


def build_geo_fetcher(config: Settings) -> GeoContextFetcher:
    sources = config.sources
    return GeoContextFetcher(
        [
            OverpassSource(url=sources.osm_overpass_url, radius_m=sources.osm_radius_m, enabled=sources.osm_enabled),
            MeetupSource(
                base_url=sources.meetup_base_url,
                token=sources.meetup_access_token,
                radius_km=sources.event_radius_km,
            ),
            EventbriteSource(
                base_url=sources.eventbrite_base_url,
                token=sources.eventbrite_token,
                radius_km=sources.event_radius_km,
            ),
        ],
        OpenWeatherSource(base_url=sources.openweather_base_url, api_key=sources.openweather_api_key),
        timeout_seconds=sources.timeout_seconds,
    )


def build_orchestrator(config: Settings) -> AggregationOrchestrator:
    """Assemble the full aggregation pipeline from configuration."""
    app = config.app
    cooldowns = ProviderCooldownRegistry(
        InMemoryCooldownStore(),
        cooldown_seconds=app.provider_cooldown_seconds,
    )
    generator = SuggestionGenerator(
        create_providers(config.llm),
        cooldowns,
        tenant_tones=app.tenant_prompt_tones,
        context_limit=app.prompt_context_limit,
    )
    return AggregationOrchestrator(
        build_geo_fetcher(config),
        generator,
        CardNormalizer(max_cards=app.max_cards),
        ResponseCache(InMemoryCacheStore(max_entries=app.cache_max_entries)),
        cache_ttl_seconds=app.cache_ttl_seconds,
    )


def get_orchestrator() -> AggregationOrchestrator:
    """FastAPI dependency returning the process-wide orchestrator."""
    global _orchestrator

    if _orchestrator is None:
        _orchestrator = build_orchestrator(settings)
        logger.info(
            "orchestrator.created",
            extra={"providers": _orchestrator.generator.provider_names},
        )
    return _orchestrator


def reset_services() -> None:
    """Drop the cached orchestrator so the next request rebuilds it."""
    global _orchestrator
    _orchestrator = None


def run_housekeeping_once() -> dict[str, int]:
    """Sweep expired rate-limit windows and stale cache entries."""
    removed = {"rate_limit_windows": get_rate_limiter().sweep(), "cache_entries": 0}
    if _orchestrator is not None:
        removed["cache_entries"] = _orchestrator.cache.sweep()
    logger.debug("housekeeping.completed", extra=removed)
    return removed


async def housekeeping_loop(interval_seconds: float) -> None:
    """Run ``run_housekeeping_once`` every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            run_housekeeping_once()
        except Exception as exc:
            logger.error("housekeeping.failed", exc_info=exc, extra={"error_type": type(exc).__name__})
