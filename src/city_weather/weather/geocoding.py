"""Open-Meteo geocoding client."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..config import Settings
from ..exceptions import GeocodingError
from ..models import City
from .base import CitySearchProvider
from .http import build_client, request_json


class OpenMeteoGeocodingClient(CitySearchProvider):
    """Keyless city search against the Open-Meteo geocoding API."""

    provider_name = "open-meteo"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._owns_client = client is None
        self._client = client or build_client(settings.timeout_seconds)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def search_url(self) -> str:
        return f"{self.settings.geocoding_base_url.rstrip('/')}/search"

    async def search_cities(self, query: str) -> list[City]:
        if len(query) < self.settings.search_min_query_length:
            return []

        limit = self.settings.search_result_limit
        payload = await request_json(
            self._client,
            self.search_url,
            params={
                "name": query,
                "count": limit,
                "language": self.settings.search_language,
                "format": "json",
            },
            context="city search",
            provider="Open-Meteo",
            error_cls=GeocodingError,
            logger=self.logger,
        )
        if not isinstance(payload, dict):
            raise GeocodingError(
                f"Open-Meteo city search returned unexpected payload type "
                f"{type(payload).__name__}.",
                category="parse",
            )

        results = payload.get("results")
        if results is None:
            self.logger.info("City search for %r returned no matches", query)
            return []
        if not isinstance(results, list):
            raise GeocodingError(
                "Open-Meteo city search payload has a non-list 'results' field.",
                category="parse",
            )

        cities = [self._normalize_city(item) for item in results[:limit]]
        self.logger.info("City search for %r returned %d candidate(s)", query, len(cities))
        return cities

    @staticmethod
    def _normalize_city(item: Any) -> City:
        if not isinstance(item, dict):
            raise GeocodingError("Open-Meteo search result is not an object.", category="parse")
        try:
            return City(
                id=item["id"],
                name=item["name"],
                region=item.get("admin1") or "",
                country=item.get("country") or "",
                latitude=item["latitude"],
                longitude=item["longitude"],
            )
        except KeyError as exc:
            raise GeocodingError(
                f"Open-Meteo search result missing field {exc.args[0]!r}.",
                category="parse",
            ) from exc
        except ValidationError as exc:
            raise GeocodingError(
                f"Open-Meteo search result failed validation: {exc}",
                category="parse",
            ) from exc
