"""Tests for card validation, deduplication and fallbacks."""

import pytest

from spontaneity.schemas.cards import CandidateCard, GeoContextDatum
from spontaneity.services.card_normalizer import (
    STATIC_FALLBACK_CARDS,
    CardNormalizer,
    FallbackContext,
    normalize_navigation_link,
    normalize_vibe_tags,
)


def candidate(title, description="A fine evening out.", tags=None, link=None, source="openai") -> CandidateCard:
    return CandidateCard(
        title=title,
        description=description,
        vibe_tags=tags,
        navigation_link=link,
        source=source,
    )


@pytest.fixture
def normalizer() -> CardNormalizer:
    return CardNormalizer(max_cards=5)


class TestNormalizeVibeTags:
    def test_splits_delimited_string(self) -> None:
        assert normalize_vibe_tags("chill, outdoors / live music - local", []) == [
            "chill",
            "outdoors",
            "live music",
            "local",
        ]

    def test_caps_count_and_length(self) -> None:
        tags = normalize_vibe_tags(["a", "b", "c", "d", "e", "x" * 40], [])
        assert tags == ["a", "b", "c", "d"]
        assert normalize_vibe_tags(["y" * 40], []) == ["y" * 32]

    def test_drops_duplicates_and_non_strings(self) -> None:
        assert normalize_vibe_tags(["fun", 3, None, "fun", " "], []) == ["fun"]

    def test_fallback_tags_then_last_resort(self) -> None:
        assert normalize_vibe_tags(None, ["chill", "openai"]) == ["chill", "openai"]
        assert normalize_vibe_tags([], ["", "  "]) == ["spontaneous"]


class TestNormalizeNavigationLink:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("https://example.com/x", "https://example.com/x"),
            (" HTTP://example.com ", "HTTP://example.com"),
            ("javascript:alert(1)", None),
            ("example.com", None),
            ("", None),
            (42, None),
        ],
    )
    def test_only_http_urls_survive(self, value, expected) -> None:
        assert normalize_navigation_link(value) == expected


class TestCardNormalizer:
    def test_dedupes_case_insensitively_first_wins(self, normalizer: CardNormalizer) -> None:
        cards = normalizer.normalize(
            [
                candidate("Jazz Night", source="openai"),
                candidate("jazz night", source="gemini"),
                candidate("Rooftop Yoga", source="gemini"),
            ],
            FallbackContext(mood="chill"),
        )

        assert [c.title for c in cards] == ["Jazz Night", "Rooftop Yoga"]
        assert cards[0].source == "openai"

    def test_dedupe_uses_full_case_folding(self, normalizer: CardNormalizer) -> None:
        cards = normalizer.normalize(
            [candidate("Straße Fest"), candidate("STRASSE FEST", source="gemini")],
            FallbackContext(mood="chill"),
        )
        assert [c.title for c in cards] == ["Straße Fest"]

    def test_caps_at_max_cards(self, normalizer: CardNormalizer) -> None:
        cards = normalizer.normalize(
            [candidate(f"Card {i}") for i in range(8)],
            FallbackContext(mood="chill"),
        )
        assert len(cards) == 5

    def test_discards_cards_missing_title_or_description(self, normalizer: CardNormalizer) -> None:
        cards = normalizer.normalize(
            [candidate("  "), candidate("Only title", description=""), candidate(None), candidate("Kept")],
            FallbackContext(mood="chill"),
        )
        assert [c.title for c in cards] == ["Kept"]

    def test_truncates_title_and_description(self, normalizer: CardNormalizer) -> None:
        [card] = normalizer.normalize(
            [candidate("T" * 200, description="D" * 700)],
            FallbackContext(mood="chill"),
        )
        assert len(card.title) == 120
        assert len(card.description) == 600

    def test_missing_tags_fall_back_to_mood_and_source(self, normalizer: CardNormalizer) -> None:
        [card] = normalizer.normalize([candidate("X", source="gemini")], FallbackContext(mood="romantic"))
        assert card.vibe_tags == ["romantic", "gemini"]

    def test_invalid_link_becomes_none(self, normalizer: CardNormalizer) -> None:
        [card] = normalizer.normalize([candidate("X", link="ftp://files")], FallbackContext(mood="chill"))
        assert card.navigation_link is None

    def test_geo_fallback_when_no_candidates(self, normalizer: CardNormalizer) -> None:
        geo = [
            GeoContextDatum(
                id="osm-1",
                name="Blue Bottle",
                type="cafe",
                description=None,
                url="https://www.openstreetmap.org/node/1",
                tags=["cafe", "coffee_shop"],
                source="osm",
            ),
            GeoContextDatum(
                id="meetup-2",
                name="Board Game Night",
                type="meetup",
                description="Casual strategy games with friendly locals.",
                url="not a url",
                tags=[],
                source="meetup",
            ),
        ]

        cards = normalizer.normalize([], FallbackContext(mood="chill", geo_data=geo))

        assert len(cards) == 2
        assert all(c.source == "fallback" for c in cards)
        assert cards[0].description == (
            "Check out this cafe that locals love around here. "
            "Learn more: https://www.openstreetmap.org/node/1"
        )
        assert cards[0].vibe_tags == ["cafe", "coffee_shop"]
        assert cards[1].description == "Casual strategy games with friendly locals."
        assert cards[1].navigation_link is None
        assert cards[1].vibe_tags == ["meetup"]

    def test_geo_fallback_title_is_trimmed_after_truncation(self, normalizer: CardNormalizer) -> None:
        geo = [GeoContextDatum(id="osm-9", name="A" * 119 + " " + "B" * 10, type="park", source="osm")]

        [card] = normalizer.normalize([], FallbackContext(mood="chill", geo_data=geo))

        assert card.title == "A" * 119

    def test_static_fallback_without_geo_data(self, normalizer: CardNormalizer) -> None:
        cards = normalizer.normalize([candidate("")], FallbackContext(mood="chill"))

        assert [c.title for c in cards] == [c.title for c in STATIC_FALLBACK_CARDS]
        assert len(cards) == 3
        assert all(c.source == "fallback" and c.navigation_link is None for c in cards)

    def test_never_returns_empty(self, normalizer: CardNormalizer) -> None:
        assert normalizer.normalize([], FallbackContext(mood="")) != []

    def test_rejects_invalid_max_cards(self) -> None:
        with pytest.raises(ValueError):
            CardNormalizer(max_cards=0)
