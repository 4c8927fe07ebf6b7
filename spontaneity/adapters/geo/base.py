"""Geo/event/weather source interfaces.

Each upstream gets one adapter that maps its own schema into
``GeoContextDatum`` at ingestion time. Adapters raise
``UpstreamUnavailableError`` on failure; the fetcher turns that into an empty
contribution.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from spontaneity.core.errors import UpstreamUnavailableError
from spontaneity.schemas.cards import GeoContextDatum, WeatherSnapshot


async def get_json(
    client: httpx.AsyncClient,
    source: str,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Any:
    """GET a JSON document, mapping every failure to UpstreamUnavailableError."""
    try:
        response = await client.get(url, params=params, headers=headers)
        response.raise_for_status()
        return response.json()
    except httpx.TimeoutException as exc:
        raise UpstreamUnavailableError(
            code="upstream_timeout",
            message=f"{source} timed out",
            details={"source": source},
        ) from exc
    except httpx.HTTPStatusError as exc:
        raise UpstreamUnavailableError(
            code="upstream_http_error",
            message=f"{source} returned HTTP {exc.response.status_code}",
            details={"source": source, "http_status": exc.response.status_code},
        ) from exc
    except httpx.HTTPError as exc:
        raise UpstreamUnavailableError(
            code="upstream_unreachable",
            message=f"{source} request failed: {type(exc).__name__}",
            details={"source": source},
        ) from exc
    except ValueError as exc:
        raise UpstreamUnavailableError(
            code="upstream_invalid_json",
            message=f"{source} returned invalid JSON",
            details={"source": source},
        ) from exc


class GeoSource(ABC):
    """A read-only source of nearby places or events."""

    name: str

    @property
    @abstractmethod
    def is_enabled(self) -> bool:
        """False when the source lacks its credential."""

    @abstractmethod
    async def fetch(self, client: httpx.AsyncClient, lat: float, lng: float) -> list[GeoContextDatum]:
        """Return data near (lat, lng).

        Raises:
            UpstreamUnavailableError: If the upstream call fails.
        """


class WeatherSource(ABC):
    """A read-only source of current conditions."""

    name: str = "weather"

    @property
    @abstractmethod
    def is_enabled(self) -> bool:
        ...

    @abstractmethod
    async def fetch(self, client: httpx.AsyncClient, lat: float, lng: float) -> WeatherSnapshot | None:
        ...
