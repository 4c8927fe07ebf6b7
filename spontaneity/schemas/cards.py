"""Pydantic schemas for geo context, suggestion cards and API payloads."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    """A WGS84 point."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class GeoContextDatum(BaseModel):
    """A nearby place or event, mapped from any source into one shape."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Source-prefixed identifier, e.g. 'osm-123'.")
    name: str
    type: str = Field(..., description="Venue or event category (cafe, park, meetup, event, ...).")
    coordinates: Coordinates | None = None
    description: str | None = None
    url: str | None = None
    tags: list[str] = Field(default_factory=list)
    source: str = Field(..., description="Source that produced the datum (osm, meetup, eventbrite).")


class WeatherSnapshot(BaseModel):
    """Current conditions, used as generation context only."""

    temp: float | None = Field(None, description="Temperature in degrees Celsius.")
    description: str | None = None


@dataclass
class CandidateCard:
    """An unvalidated card exactly as a provider returned it.

    Field values are kept raw (any JSON type) so validation happens in one
    place, the card normalizer.
    """

    title: Any
    description: Any
    vibe_tags: Any
    navigation_link: Any
    source: str

    @classmethod
    def from_raw(cls, raw: Any, source: str) -> CandidateCard | None:
        """Build a candidate from one element of a provider's JSON array.

        Returns None when the element is not a JSON object.
        """
        if not isinstance(raw, dict):
            return None
        return cls(
            title=raw.get("title"),
            description=raw.get("description"),
            vibe_tags=raw.get("vibeTags", raw.get("vibe_tags")),
            navigation_link=raw.get("navigationLink", raw.get("navigation_link")),
            source=source,
        )


class SuggestionCard(BaseModel):
    """A validated card ready to be returned to clients."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    vibe_tags: list[str] = Field(..., alias="vibeTags", min_length=1, max_length=4)
    navigation_link: str | None = Field(None, alias="navigationLink")
    source: str = Field(..., exclude=True)


class AICard(BaseModel):
    """Public card shape inside ``aiCards``."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    vibe_tags: list[str] = Field(..., alias="vibeTags")
    navigation_link: str | None = Field(None, alias="navigationLink")


class Diagnostics(BaseModel):
    """Non-fatal degradations for one response.

    Besides ``errors`` the object carries one ``<provider>RateLimited``
    boolean per configured LLM provider.
    """

    model_config = ConfigDict(extra="allow")

    errors: list[str] = Field(default_factory=list)


class SpontaneousCardsResponse(BaseModel):
    """Response payload of the spontaneous cards endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    ai_cards: list[AICard] = Field(..., alias="aiCards")
    sources: dict[str, int] = Field(
        ...,
        description="Number of returned cards per producing source (providers and 'fallback').",
    )
    weather: WeatherSnapshot | None = None
    combined_data_count: int = Field(..., alias="combinedDataCount")
    diagnostics: Diagnostics


class TenantResolveResponse(BaseModel):
    """Response payload of the tenant resolution endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    tenant_id: str = Field(..., alias="tenantId")
    source: str = Field(..., description="Credential surface that supplied the tenant.")
    sources: dict[str, bool] = Field(
        ...,
        description="Which credential surfaces carried a value on this request.",
    )


@dataclass
class GenerationContext:
    """Inputs shared by every provider prompt for one request."""

    lat: float
    lng: float
    mood: str
    weather: WeatherSnapshot | None = None
    geo_data: list[GeoContextDatum] = field(default_factory=list)
