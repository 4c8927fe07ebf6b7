"""Current weather from OpenWeather."""

from __future__ import annotations

import httpx

from spontaneity.adapters.geo.base import WeatherSource, get_json
from spontaneity.schemas.cards import WeatherSnapshot
from spontaneity.utils.text_normalizer import clean_str


class OpenWeatherSource(WeatherSource):
    name = "weather"

    def __init__(self, *, base_url: str, api_key: str | None) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    @property
    def is_enabled(self) -> bool:
        return bool(self._api_key)

    async def fetch(self, client: httpx.AsyncClient, lat: float, lng: float) -> WeatherSnapshot | None:
        data = await get_json(
            client,
            self.name,
            f"{self._base_url}/weather",
            params={"lat": lat, "lon": lng, "units": "metric", "appid": self._api_key},
        )
        if not isinstance(data, dict):
            return None

        main = data.get("main") or {}
        temp = main.get("temp")
        conditions = data.get("weather") or []
        description = clean_str(conditions[0].get("description")) if conditions and isinstance(conditions[0], dict) else ""
        return WeatherSnapshot(
            temp=temp if isinstance(temp, (int, float)) else None,
            description=description or None,
        )
