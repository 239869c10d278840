"""Weather provider integrations: direct Open-Meteo access or the keyed proxy."""

from __future__ import annotations

import logging

import httpx

from ..config import Settings
from .base import CitySearchProvider, WeatherProvider
from .forecast import OpenMeteoWeatherClient
from .geocoding import OpenMeteoGeocodingClient
from .proxied import ProxyGeocodingClient, ProxyWeatherClient


def build_weather_provider(
    settings: Settings,
    logger: logging.Logger,
    *,
    client: httpx.AsyncClient | None = None,
) -> WeatherProvider:
    """Create the weather provider (and its geocoder) for the configured mode."""
    if settings.provider_mode == "proxy":
        return ProxyWeatherClient(settings, logger, client=client)
    return OpenMeteoWeatherClient(settings, logger, client=client)


__all__ = [
    "CitySearchProvider",
    "OpenMeteoGeocodingClient",
    "OpenMeteoWeatherClient",
    "ProxyGeocodingClient",
    "ProxyWeatherClient",
    "WeatherProvider",
    "build_weather_provider",
]
