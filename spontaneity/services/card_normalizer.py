"""Validation, deduplication and fallback synthesis for suggestion cards."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

from spontaneity.schemas.cards import CandidateCard, GeoContextDatum, SuggestionCard
from spontaneity.utils.text_normalizer import clean_str

logger = logging.getLogger(__name__)

MAX_TITLE_CHARS = 120
MAX_DESCRIPTION_CHARS = 600
MAX_TAG_CHARS = 32
MAX_TAGS = 4
DEFAULT_MAX_CARDS = 5
LAST_RESORT_TAG = "spontaneous"
FALLBACK_SOURCE = "fallback"

_TAG_SPLIT_RE = re.compile(r"[,/]|\s+-\s+")
_LINK_RE = re.compile(r"^https?://", re.IGNORECASE)

STATIC_FALLBACK_CARDS: tuple[SuggestionCard, ...] = (
    SuggestionCard(
        title="Hidden Rooftop Vinyl Session",
        description="Sip a crafted mocktail while a local DJ spins rare grooves overlooking the skyline.",
        vibe_tags=["chill", "nightlife", "local"],
        navigation_link=None,
        source=FALLBACK_SOURCE,
    ),
    SuggestionCard(
        title="Neighborhood Street Food Crawl",
        description="Follow a curated path of family-run stalls serving late-night bites just off the main drag.",
        vibe_tags=["foodie", "social", "spontaneous"],
        navigation_link=None,
        source=FALLBACK_SOURCE,
    ),
    SuggestionCard(
        title="Lantern-Lit Urban Garden Stroll",
        description="Wind through a pocket park strung with lights and meet volunteers tending the community beds.",
        vibe_tags=["calm", "outdoors", "local"],
        navigation_link=None,
        source=FALLBACK_SOURCE,
    ),
)


@dataclass
class FallbackContext:
    """What the normalizer needs when no provider card survives."""

    mood: str
    tenant_id: str | None = None
    geo_data: list[GeoContextDatum] = field(default_factory=list)


def normalize_vibe_tags(value: Any, fallback_tags: list[str]) -> list[str]:
    """Turn a list or delimited string into at most four unique tags.

    Falls back to ``fallback_tags`` when nothing usable is present, and to
    "spontaneous" when those are empty too.
    """
    tags: list[str] = []

    def add(raw: Any) -> None:
        tag = clean_str(raw)[:MAX_TAG_CHARS].strip()
        if tag and tag not in tags:
            tags.append(tag)

    if isinstance(value, list):
        for entry in value:
            add(entry)
    elif isinstance(value, str):
        for token in _TAG_SPLIT_RE.split(value):
            add(token)

    if not tags:
        for tag in fallback_tags:
            add(tag)

    if not tags:
        tags.append(LAST_RESORT_TAG)

    return tags[:MAX_TAGS]


def normalize_navigation_link(value: Any) -> str | None:
    """Return the link only when it is an absolute http(s) URL."""
    link = clean_str(value)
    if link and _LINK_RE.match(link):
        return link
    return None


def dedupe_cards(cards: list[SuggestionCard]) -> list[SuggestionCard]:
    """Drop cards whose title repeats an earlier one, ignoring case."""
    seen: set[str] = set()
    unique: list[SuggestionCard] = []
    for card in cards:
        key = card.title.casefold()
        if key in seen:
            continue
        seen.add(key)
        unique.append(card)
    return unique


class CardNormalizer:
    """Validates provider candidates and guarantees a non-empty card list.

    Args:
        max_cards: Upper bound on the number of cards returned.
    """

    def __init__(self, max_cards: int = DEFAULT_MAX_CARDS) -> None:
        if max_cards < 1:
            raise ValueError("max_cards must be at least 1")
        self.max_cards = max_cards

    def normalize_card(self, candidate: CandidateCard, mood: str) -> SuggestionCard | None:
        """Validate one candidate; None when title or description is empty."""
        title = clean_str(candidate.title)[:MAX_TITLE_CHARS].strip()
        description = clean_str(candidate.description)[:MAX_DESCRIPTION_CHARS].strip()
        if not title or not description:
            return None

        return SuggestionCard(
            title=title,
            description=description,
            vibe_tags=normalize_vibe_tags(candidate.vibe_tags, [mood, candidate.source]),
            navigation_link=normalize_navigation_link(candidate.navigation_link),
            source=candidate.source,
        )

    def normalize(
        self,
        candidates: list[CandidateCard],
        fallback_context: FallbackContext,
    ) -> list[SuggestionCard]:
        """Validate, dedupe and cap candidates, synthesizing fallbacks if none remain.

        Args:
            candidates: Provider candidates in priority order.
            fallback_context: Mood and geo data used for tag and card fallbacks.

        Returns:
            list[SuggestionCard]: Between 1 and ``max_cards`` cards.
        """
        valid = [
            card
            for card in (self.normalize_card(candidate, fallback_context.mood) for candidate in candidates)
            if card is not None
        ]
        dropped = len(candidates) - len(valid)
        if dropped:
            logger.debug("cards.discarded", extra={"count": dropped})

        cards = dedupe_cards(valid)[: self.max_cards]
        if cards:
            return cards

        logger.warning(
            "cards.fallback",
            extra={
                "tenant_id": fallback_context.tenant_id,
                "geo_count": len(fallback_context.geo_data),
            },
        )
        return dedupe_cards(self.fallback_cards(fallback_context))[: self.max_cards]

    def fallback_cards(self, fallback_context: FallbackContext) -> list[SuggestionCard]:
        """Build deterministic cards from geo data, or the static placeholders."""
        if not fallback_context.geo_data:
            return list(STATIC_FALLBACK_CARDS)

        fallback_tags = [fallback_context.mood, "local"]
        cards = []
        for index, datum in enumerate(fallback_context.geo_data[: self.max_cards]):
            title = clean_str(datum.name)[:MAX_TITLE_CHARS].strip() or f"Local Discovery {index + 1}"
            description = clean_str(datum.description)
            if len(description) <= 12:
                description = f"Check out this {datum.type or 'hangout'} that locals love around here."
            link = normalize_navigation_link(datum.url)
            if link:
                description = f"{description} Learn more: {link}"

            cards.append(
                SuggestionCard(
                    title=title,
                    description=description[:MAX_DESCRIPTION_CHARS],
                    vibe_tags=normalize_vibe_tags(datum.tags or [datum.type], fallback_tags),
                    navigation_link=link,
                    source=FALLBACK_SOURCE,
                )
            )
        return cards
