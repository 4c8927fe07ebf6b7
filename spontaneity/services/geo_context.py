"""Concurrent fan-out to geo, event and weather sources.

Every enabled source is queried in its own task. Each task catches its own
failure and returns an empty contribution, so one broken upstream never
cancels or fails its siblings. Weather is kept apart from the place/event
data because it only feeds prompts.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable

import httpx

from spontaneity.adapters.geo.base import GeoSource, WeatherSource
from spontaneity.core.errors import UpstreamUnavailableError
from spontaneity.schemas.cards import GeoContextDatum, WeatherSnapshot

logger = logging.getLogger(__name__)


@dataclass
class GeoContext:
    """Everything the sources returned for one point."""

    data: list[GeoContextDatum] = field(default_factory=list)
    weather: WeatherSnapshot | None = None
    errors: list[str] = field(default_factory=list)


class GeoContextFetcher:
    """Queries all configured sources for a location.

    Args:
        sources: Place/event sources, in the order their data is concatenated.
        weather_source: Optional weather source.
        client_factory: Builds the HTTP client shared by one fetch.
        timeout_seconds: Per-call timeout for the default client.
    """

    def __init__(
        self,
        sources: list[GeoSource],
        weather_source: WeatherSource | None = None,
        *,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
        timeout_seconds: float = 8.0,
    ) -> None:
        self.sources = list(sources)
        self.weather_source = weather_source
        self._client_factory = client_factory or (
            lambda: httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))
        )

    async def fetch(self, lat: float, lng: float) -> GeoContext:
        """Fetch nearby data and weather. Never raises for source failures."""
        context = GeoContext()

        async with self._client_factory() as client:
            weather_task = self._fetch_weather(client, lat, lng, context.errors)
            data_tasks = [self._fetch_source(source, client, lat, lng, context.errors) for source in self.sources]
            weather, *per_source = await asyncio.gather(weather_task, *data_tasks)

        context.weather = weather
        for datums in per_source:
            context.data.extend(datums)

        logger.info(
            "geo_context.fetched",
            extra={
                "data_count": len(context.data),
                "has_weather": weather is not None,
                "failed_sources": len(context.errors),
            },
        )
        return context

    async def _fetch_source(
        self,
        source: GeoSource,
        client: httpx.AsyncClient,
        lat: float,
        lng: float,
        errors: list[str],
    ) -> list[GeoContextDatum]:
        if not source.is_enabled:
            logger.warning("geo_source.disabled", extra={"source": source.name})
            return []
        try:
            return await source.fetch(client, lat, lng)
        except UpstreamUnavailableError as exc:
            logger.warning("geo_source.failed", extra={"source": source.name, "error_code": exc.code})
            errors.append(f"{source.name}: {exc.message}")
        except Exception as exc:
            logger.warning(
                "geo_source.failed",
                exc_info=exc,
                extra={"source": source.name, "error_type": type(exc).__name__},
            )
            errors.append(f"{source.name}: {type(exc).__name__}")
        return []

    async def _fetch_weather(
        self,
        client: httpx.AsyncClient,
        lat: float,
        lng: float,
        errors: list[str],
    ) -> WeatherSnapshot | None:
        source = self.weather_source
        if source is None:
            return None
        if not source.is_enabled:
            logger.warning("geo_source.disabled", extra={"source": source.name})
            return None
        try:
            return await source.fetch(client, lat, lng)
        except UpstreamUnavailableError as exc:
            logger.warning("geo_source.failed", extra={"source": source.name, "error_code": exc.code})
            errors.append(f"{source.name}: {exc.message}")
        except Exception as exc:
            logger.warning(
                "geo_source.failed",
                exc_info=exc,
                extra={"source": source.name, "error_type": type(exc).__name__},
            )
            errors.append(f"{source.name}: {type(exc).__name__}")
        return None
