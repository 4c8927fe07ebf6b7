"""Event discovery sources: Meetup and Eventbrite.

Both require a bearer token; without one the source is disabled.
"""

from __future__ import annotations

from typing import Any

import httpx

from spontaneity.adapters.geo.base import GeoSource, get_json
from spontaneity.schemas.cards import Coordinates, GeoContextDatum
from spontaneity.utils.text_normalizer import clean_str


def _coordinates(lat: Any, lng: Any) -> Coordinates | None:
    try:
        lat_f, lng_f = float(lat), float(lng)
    except (TypeError, ValueError):
        return None
    if not (-90 <= lat_f <= 90 and -180 <= lng_f <= 180):
        return None
    return Coordinates(lat=lat_f, lng=lng_f)


def map_meetup_event(event: dict[str, Any]) -> GeoContextDatum | None:
    if event.get("id") is None:
        return None
    venue = event.get("venue") or {}
    group = event.get("group") or {}
    return GeoContextDatum(
        id=f"meetup-{event['id']}",
        name=clean_str(event.get("name")) or "Meetup Hangout",
        type="meetup",
        coordinates=_coordinates(venue.get("lat"), venue.get("lon")),
        description=clean_str(event.get("description")) or None,
        url=clean_str(event.get("link")) or None,
        tags=[tag for tag in ("meetup", clean_str(group.get("name"))) if tag],
        source="meetup",
    )


def map_eventbrite_event(event: dict[str, Any]) -> GeoContextDatum | None:
    if event.get("id") is None:
        return None
    name = event.get("name") or {}
    description = event.get("description") or {}
    venue = event.get("venue") or {}
    start = event.get("start") or {}
    return GeoContextDatum(
        id=f"eventbrite-{event['id']}",
        name=clean_str(name.get("text")) or "Eventbrite Pick",
        type="event",
        coordinates=_coordinates(venue.get("latitude"), venue.get("longitude")),
        description=clean_str(description.get("text")) or None,
        url=clean_str(event.get("url")) or None,
        tags=[tag for tag in ("eventbrite", clean_str(start.get("local"))) if tag],
        source="eventbrite",
    )


class _BearerEventSource(GeoSource):
    def __init__(self, *, base_url: str, token: str | None, radius_km: int = 10) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._radius_km = radius_km

    @property
    def is_enabled(self) -> bool:
        return bool(self._token)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    @staticmethod
    def _events(data: Any) -> list[dict[str, Any]]:
        events = data.get("events") if isinstance(data, dict) else None
        return [event for event in events or [] if isinstance(event, dict)]


class MeetupSource(_BearerEventSource):
    name = "meetup"

    async def fetch(self, client: httpx.AsyncClient, lat: float, lng: float) -> list[GeoContextDatum]:
        data = await get_json(
            client,
            self.name,
            f"{self._base_url}/find/upcoming_events",
            params={"lat": lat, "lon": lng, "radius": self._radius_km},
            headers=self._headers(),
        )
        mapped = (map_meetup_event(event) for event in self._events(data))
        return [datum for datum in mapped if datum is not None]


class EventbriteSource(_BearerEventSource):
    name = "eventbrite"

    async def fetch(self, client: httpx.AsyncClient, lat: float, lng: float) -> list[GeoContextDatum]:
        data = await get_json(
            client,
            self.name,
            f"{self._base_url}/events/search/",
            params={
                "location.latitude": lat,
                "location.longitude": lng,
                "location.within": f"{self._radius_km}km",
            },
            headers=self._headers(),
        )
        mapped = (map_eventbrite_event(event) for event in self._events(data))
        return [datum for datum in mapped if datum is not None]
