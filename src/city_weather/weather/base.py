"""Provider-agnostic city search and weather interfaces."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from ..exceptions import CityNotFoundError
from ..models import City, WeatherRecord


class CitySearchProvider(ABC):
    """Resolves free-text queries to ranked city candidates."""

    provider_name: str

    @abstractmethod
    async def search_cities(self, query: str) -> list[City]:
        """Return up to the configured number of candidates, best first."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release provider resources."""

    async def __aenter__(self) -> CitySearchProvider:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()


class WeatherProvider(ABC):
    """Fetches current conditions and normalizes them into a WeatherRecord."""

    provider_name: str
    geocoder: CitySearchProvider
    logger: logging.Logger

    @abstractmethod
    async def fetch_weather_by_coords(
        self,
        latitude: float,
        longitude: float,
        name: str,
        region: str,
        country: str,
    ) -> WeatherRecord:
        """Fetch current conditions for a coordinate pair."""

    @abstractmethod
    async def aclose(self) -> None:
        """Release provider resources."""

    async def __aenter__(self) -> WeatherProvider:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def fetch_weather_by_city(self, name: str) -> WeatherRecord:
        """Geocode ``name`` and fetch weather for the highest-ranked match."""
        cities = await self.geocoder.search_cities(name)
        if not cities:
            raise CityNotFoundError(f"City not found: {name!r}")
        city = cities[0]
        self.logger.info(
            "Resolved %r to %s (%.4f, %.4f)",
            name,
            city.display_name,
            city.latitude,
            city.longitude,
        )
        return await self.fetch_weather_by_coords(
            city.latitude,
            city.longitude,
            city.name,
            city.region,
            city.country,
        )
