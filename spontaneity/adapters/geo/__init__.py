"""Read-only geo, event and weather sources."""

from spontaneity.adapters.geo.base import GeoSource, WeatherSource
from spontaneity.adapters.geo.events import EventbriteSource, MeetupSource
from spontaneity.adapters.geo.osm import OverpassSource
from spontaneity.adapters.geo.weather import OpenWeatherSource

__all__ = [
    "EventbriteSource",
    "GeoSource",
    "MeetupSource",
    "OpenWeatherSource",
    "OverpassSource",
    "WeatherSource",
]
