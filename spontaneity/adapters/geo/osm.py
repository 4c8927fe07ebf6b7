"""OpenStreetMap points of interest via the Overpass API."""

from __future__ import annotations

from typing import Any

import httpx

from spontaneity.adapters.geo.base import GeoSource, get_json
from spontaneity.schemas.cards import Coordinates, GeoContextDatum
from spontaneity.utils.text_normalizer import clean_str

POI_FILTERS: tuple[tuple[str, str], ...] = (
    ("amenity", "cafe"),
    ("amenity", "restaurant"),
    ("amenity", "bar"),
    ("amenity", "pub"),
    ("leisure", "park"),
    ("leisure", "garden"),
    ("tourism", "museum"),
    ("tourism", "viewpoint"),
    ("tourism", "artwork"),
    ("tourism", "gallery"),
    ("amenity", "cinema"),
)


def build_overpass_query(lat: float, lng: float, radius_m: int) -> str:
    nodes = "\n".join(
        f'  node["{key}"="{value}"](around:{radius_m},{lat},{lng});' for key, value in POI_FILTERS
    )
    return f"[out:json][timeout:25];\n(\n{nodes}\n);\nout center;"


def map_element(element: Any) -> GeoContextDatum | None:
    """Map one Overpass node to a datum. Non-objects and elements without an id are skipped."""
    if not isinstance(element, dict):
        return None
    element_id = element.get("id")
    if element_id is None:
        return None

    tags = element.get("tags")
    if not isinstance(tags, dict):
        tags = {}
    kind = (
        clean_str(tags.get("amenity"))
        or clean_str(tags.get("leisure"))
        or clean_str(tags.get("tourism"))
        or "experience"
    )
    website = clean_str(tags.get("website")) or clean_str(tags.get("url"))

    lat, lng = element.get("lat"), element.get("lon")
    coordinates = None
    if isinstance(lat, (int, float)) and isinstance(lng, (int, float)):
        coordinates = Coordinates(lat=lat, lng=lng)

    return GeoContextDatum(
        id=f"osm-{element_id}",
        name=clean_str(tags.get("name")) or "Local Gem",
        type=kind,
        coordinates=coordinates,
        description=clean_str(tags.get("description")) or None,
        url=website or f"https://www.openstreetmap.org/node/{element_id}",
        tags=[tag for tag in (kind, clean_str(tags.get("cuisine"))) if tag],
        source="osm",
    )


class OverpassSource(GeoSource):
    name = "osm"

    def __init__(self, *, url: str, radius_m: int = 1200, enabled: bool = True) -> None:
        self._url = url
        self._radius_m = radius_m
        self._enabled = enabled

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    async def fetch(self, client: httpx.AsyncClient, lat: float, lng: float) -> list[GeoContextDatum]:
        query = build_overpass_query(lat, lng, self._radius_m)
        data = await get_json(client, self.name, self._url, params={"data": query})
        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            return []
        return [datum for datum in map(map_element, elements) if datum is not None]
