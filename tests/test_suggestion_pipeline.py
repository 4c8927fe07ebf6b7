"""Tests for provider fan-out, cooldown handling and end-to-end composition."""

from unittest.mock import Mock

import pytest

from spontaneity.adapters.cache.in_memory import InMemoryCacheStore
from spontaneity.adapters.cooldown.in_memory import InMemoryCooldownStore
from spontaneity.adapters.llm.base import SuggestionProvider
from spontaneity.core.errors import MalformedProviderOutputError, ProviderOverloadedError
from spontaneity.schemas.cards import CandidateCard, GenerationContext, GeoContextDatum, WeatherSnapshot
from spontaneity.services.card_normalizer import CardNormalizer
from spontaneity.services.cooldown_registry import ProviderCooldownRegistry
from spontaneity.services.geo_context import GeoContext
from spontaneity.services.orchestrator import AggregationOrchestrator
from spontaneity.services.response_cache import ResponseCache
from spontaneity.services.suggestion_generator import SuggestionGenerator, build_prompt


class FakeProvider(SuggestionProvider):
    """Scripted provider recording every prompt it receives."""

    def __init__(self, name: str, outcome=None, *, available: bool = True, persona: str = "You are a test guide."):
        self.name = name
        self.persona = persona
        self._outcome = outcome if outcome is not None else []
        self._available = available
        self.prompts: list[str] = []

    @property
    def is_available(self) -> bool:
        return self._available

    async def generate(self, prompt: str) -> list[CandidateCard]:
        self.prompts.append(prompt)
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return list(self._outcome)


class FakeGeoFetcher:
    def __init__(self, context: GeoContext) -> None:
        self.context = context
        self.calls = 0

    async def fetch(self, lat: float, lng: float) -> GeoContext:
        self.calls += 1
        return self.context


def card(title: str, source: str) -> CandidateCard:
    return CandidateCard(
        title=title,
        description=f"{title} description",
        vibe_tags=["fun"],
        navigation_link="https://example.com",
        source=source,
    )


def overloaded(name: str) -> ProviderOverloadedError:
    return ProviderOverloadedError(code="provider_rate_limited", message=f"{name} signalled rate limiting")


CONTEXT = GenerationContext(lat=40.7128, lng=-74.006, mood="chill")


@pytest.fixture
def clock() -> Mock:
    return Mock(return_value=1000.0)


@pytest.fixture
def cooldowns(clock: Mock) -> ProviderCooldownRegistry:
    return ProviderCooldownRegistry(InMemoryCooldownStore(), cooldown_seconds=600, clock=clock)


class TestBuildPrompt:
    def test_contains_persona_tone_context_and_instructions(self) -> None:
        geo = [
            GeoContextDatum(id=f"osm-{i}", name=f"Place {i}", type="cafe", source="osm") for i in range(20)
        ]
        context = GenerationContext(
            lat=40.71284, lng=-74.00601, mood="chill", weather=WeatherSnapshot(temp=20.0), geo_data=geo
        )

        prompt = build_prompt(FakeProvider("openai"), context, tone="Keep it family-friendly.", context_limit=12)

        assert prompt.startswith("You are a test guide.")
        assert "Keep it family-friendly." in prompt
        assert "40.7128, -74.0060" in prompt
        assert "Traveler mood: chill" in prompt
        assert '"temp": 20.0' in prompt
        assert "Place 11" in prompt
        assert "Place 12" not in prompt
        assert '"navigationLink"' in prompt


class TestSuggestionGenerator:
    @pytest.mark.asyncio
    async def test_concatenates_in_provider_order(self, cooldowns) -> None:
        generator = SuggestionGenerator(
            [FakeProvider("openai", [card("A", "openai")]), FakeProvider("gemini", [card("B", "gemini")])],
            cooldowns,
        )

        result = await generator.generate("tenant-1", CONTEXT)

        assert [c.title for c in result.cards] == ["A", "B"]
        assert result.errors == []
        assert result.per_provider == {"openai": 1, "gemini": 1}

    @pytest.mark.asyncio
    async def test_overloaded_provider_starts_cooldown_and_is_skipped_next_time(self, cooldowns, clock) -> None:
        primary = FakeProvider("openai", overloaded("openai"))
        secondary = FakeProvider("gemini", [card("B", "gemini")])
        generator = SuggestionGenerator([primary, secondary], cooldowns)

        first = await generator.generate("tenant-1", CONTEXT)
        assert [c.title for c in first.cards] == ["B"]
        assert first.errors == ["openai: openai signalled rate limiting"]
        assert cooldowns.is_cooling_down("openai") is True

        clock.return_value = 1300.0
        second = await generator.generate("tenant-1", CONTEXT)
        assert len(primary.prompts) == 1
        assert len(secondary.prompts) == 2
        assert second.errors == ["openai: skipped, cooling down"]

        clock.return_value = 1601.0
        await generator.generate("tenant-1", CONTEXT)
        assert len(primary.prompts) == 2

    @pytest.mark.asyncio
    async def test_malformed_output_does_not_cool_down(self, cooldowns) -> None:
        broken = FakeProvider(
            "openai", MalformedProviderOutputError(code="invalid_json", message="openai returned invalid JSON")
        )
        generator = SuggestionGenerator([broken], cooldowns)

        result = await generator.generate("tenant-1", CONTEXT)

        assert result.cards == []
        assert result.errors == ["openai: openai returned invalid JSON"]
        assert cooldowns.is_cooling_down("openai") is False

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self, cooldowns) -> None:
        generator = SuggestionGenerator(
            [FakeProvider("openai", RuntimeError("boom")), FakeProvider("gemini", [card("B", "gemini")])],
            cooldowns,
        )

        result = await generator.generate("tenant-1", CONTEXT)

        assert [c.title for c in result.cards] == ["B"]
        assert result.errors == ["openai: RuntimeError"]

    @pytest.mark.asyncio
    async def test_unavailable_provider_is_skipped_silently(self, cooldowns) -> None:
        missing = FakeProvider("gemini", available=False)
        generator = SuggestionGenerator([FakeProvider("openai", [card("A", "openai")]), missing], cooldowns)

        result = await generator.generate("tenant-1", CONTEXT)

        assert missing.prompts == []
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_tenant_tone_is_applied(self, cooldowns) -> None:
        provider = FakeProvider("openai", [])
        generator = SuggestionGenerator(
            [provider], cooldowns, tenant_tones={"tenant-2": "Emphasize outdoor adventures."}
        )

        await generator.generate("tenant-2", CONTEXT)

        assert "Emphasize outdoor adventures." in provider.prompts[0]


def make_orchestrator(providers, cooldowns, clock, geo_context=None):
    geo = FakeGeoFetcher(geo_context or GeoContext())
    orchestrator = AggregationOrchestrator(
        geo,
        SuggestionGenerator(providers, cooldowns),
        CardNormalizer(max_cards=5),
        ResponseCache(InMemoryCacheStore(), clock=clock),
        cache_ttl_seconds=300,
    )
    return orchestrator, geo


class TestAggregationOrchestrator:
    @pytest.mark.asyncio
    async def test_payload_shape_and_dedup_across_providers(self, cooldowns, clock) -> None:
        openai_cards = [card("Jazz Night", "openai"), card("Rooftop Yoga", "openai")]
        gemini_cards = [card("JAZZ NIGHT", "gemini"), card("Street Tacos", "gemini")]
        geo_context = GeoContext(
            data=[GeoContextDatum(id="osm-1", name="Cafe", type="cafe", source="osm")],
            weather=WeatherSnapshot(temp=21.0, description="sunny"),
            errors=["meetup: meetup returned HTTP 503"],
        )
        orchestrator, _ = make_orchestrator(
            [FakeProvider("openai", openai_cards), FakeProvider("gemini", gemini_cards)],
            cooldowns,
            clock,
            geo_context,
        )

        payload = await orchestrator.run("tenant-1", 40.7128, -74.006, "chill")

        assert [c["title"] for c in payload["aiCards"]] == ["Jazz Night", "Rooftop Yoga", "Street Tacos"]
        assert set(payload["aiCards"][0]) == {"title", "description", "vibeTags", "navigationLink"}
        assert payload["sources"] == {"openai": 2, "gemini": 1, "fallback": 0}
        assert payload["weather"] == {"temp": 21.0, "description": "sunny"}
        assert payload["combinedDataCount"] == 1
        assert payload["diagnostics"] == {
            "errors": ["meetup: meetup returned HTTP 503"],
            "openaiRateLimited": False,
            "geminiRateLimited": False,
        }

    @pytest.mark.asyncio
    async def test_fallback_when_all_providers_fail(self, cooldowns, clock) -> None:
        orchestrator, _ = make_orchestrator(
            [FakeProvider("openai", overloaded("openai")), FakeProvider("gemini", overloaded("gemini"))],
            cooldowns,
            clock,
        )

        payload = await orchestrator.run("tenant-1", 1.0, 2.0, "chill")

        assert len(payload["aiCards"]) == 3
        assert payload["sources"] == {"openai": 0, "gemini": 0, "fallback": 3}
        assert payload["weather"] is None
        assert payload["diagnostics"]["openaiRateLimited"] is True
        assert payload["diagnostics"]["geminiRateLimited"] is True
        assert len(payload["diagnostics"]["errors"]) == 2

    @pytest.mark.asyncio
    async def test_second_request_is_served_from_cache(self, cooldowns, clock) -> None:
        provider = FakeProvider("openai", [card("A", "openai")])
        orchestrator, geo = make_orchestrator([provider], cooldowns, clock)

        first = await orchestrator.run("tenant-1", 40.71281, -74.00601, "Chill")
        clock.return_value = 1100.0
        second = await orchestrator.run("tenant-1", 40.7131, -74.0059, "chill ")

        assert first == second
        assert geo.calls == 1
        assert len(provider.prompts) == 1

        clock.return_value = 1400.0
        await orchestrator.run("tenant-1", 40.7128, -74.006, "chill")
        assert geo.calls == 2

    @pytest.mark.asyncio
    async def test_cache_is_partitioned_by_tenant(self, cooldowns, clock) -> None:
        provider = FakeProvider("openai", [card("A", "openai")])
        orchestrator, geo = make_orchestrator([provider], cooldowns, clock)

        await orchestrator.run("tenant-1", 1.0, 2.0, "chill")
        await orchestrator.run("tenant-2", 1.0, 2.0, "chill")

        assert geo.calls == 2
