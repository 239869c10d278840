"""City search and current conditions served through the weather proxy.

The proxy fronts a keyed provider (WeatherAPI.com), so payloads arrive in
that provider's shape: search results carry ``lat``/``lon`` and current
conditions already include condition text, icon URL, visibility and a local
wall-clock time.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import ValidationError

from ..conditions import UNKNOWN_CONDITION, WeatherCondition, degrees_to_compass
from ..config import Settings
from ..exceptions import ConfigurationError, GeocodingError, PayloadParseError, WeatherFetchError
from ..models import City, CurrentConditions, WeatherLocation, WeatherRecord
from .base import CitySearchProvider, WeatherProvider
from .forecast import validate_coordinates
from .http import build_client, request_json

_PROVIDER_LABEL = "Weather proxy"
_LOCALTIME_FORMAT = "%Y-%m-%d %H:%M"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _proxy_url(settings: Settings) -> str:
    if settings.proxy_url is None:
        raise ConfigurationError("WEATHER_PROXY_URL must be set to use the weather proxy.")
    return str(settings.proxy_url)


class ProxyGeocodingClient(CitySearchProvider):
    """City autocomplete via ``GET {proxy}?action=search&q=...``."""

    provider_name = "weather-proxy"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.proxy_url = _proxy_url(settings)
        self._owns_client = client is None
        self._client = client or build_client(settings.timeout_seconds)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def search_cities(self, query: str) -> list[City]:
        if len(query) < self.settings.search_min_query_length:
            return []

        payload = await request_json(
            self._client,
            self.proxy_url,
            params={"action": "search", "q": query},
            context="city search",
            provider=_PROVIDER_LABEL,
            error_cls=GeocodingError,
            logger=self.logger,
        )
        if not isinstance(payload, list):
            raise GeocodingError(
                f"Weather proxy city search returned unexpected payload type "
                f"{type(payload).__name__}.",
                category="parse",
            )
        cities = [
            self._normalize_city(item)
            for item in payload[: self.settings.search_result_limit]
        ]
        self.logger.info("City search for %r returned %d candidate(s)", query, len(cities))
        return cities

    @staticmethod
    def _normalize_city(item: Any) -> City:
        if not isinstance(item, dict):
            raise GeocodingError("Weather proxy search result is not an object.", category="parse")
        try:
            return City(
                id=item["id"],
                name=item["name"],
                region=item.get("region") or "",
                country=item.get("country") or "",
                latitude=item["lat"],
                longitude=item["lon"],
            )
        except KeyError as exc:
            raise GeocodingError(
                f"Weather proxy search result missing field {exc.args[0]!r}.",
                category="parse",
            ) from exc
        except ValidationError as exc:
            raise GeocodingError(
                f"Weather proxy search result failed validation: {exc}",
                category="parse",
            ) from exc


class ProxyWeatherClient(WeatherProvider):
    """Current conditions via ``GET {proxy}?q=<lat>,<lon>``."""

    provider_name = "weather-proxy"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        *,
        geocoder: CitySearchProvider | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.proxy_url = _proxy_url(settings)
        self._clock = clock
        self._owns_client = client is None
        self._client = client or build_client(settings.timeout_seconds)
        self._owns_geocoder = geocoder is None
        self.geocoder = geocoder or ProxyGeocodingClient(settings, logger, client=self._client)

    async def aclose(self) -> None:
        if self._owns_geocoder:
            await self.geocoder.aclose()
        if self._owns_client:
            await self._client.aclose()

    async def fetch_weather_by_coords(
        self,
        latitude: float,
        longitude: float,
        name: str,
        region: str,
        country: str,
    ) -> WeatherRecord:
        validate_coordinates(latitude, longitude)
        payload = await request_json(
            self._client,
            self.proxy_url,
            params={"q": f"{latitude:.4f},{longitude:.4f}"},
            context="current conditions fetch",
            provider=_PROVIDER_LABEL,
            error_cls=WeatherFetchError,
            logger=self.logger,
        )
        record = self.normalize_payload(
            payload,
            name=name,
            region=region,
            country=country,
            received_at=self._clock(),
        )
        self.logger.info(
            "Fetched current conditions for %s: %s, %.1fC",
            name,
            record.current.condition.text,
            record.current.temp_c,
        )
        return record

    def normalize_payload(
        self,
        payload: Any,
        *,
        name: str,
        region: str,
        country: str,
        received_at: datetime,
    ) -> WeatherRecord:
        """Map a proxied current-conditions payload onto a WeatherRecord."""
        if not isinstance(payload, dict):
            raise PayloadParseError(
                f"Weather proxy returned unexpected payload type {type(payload).__name__}."
            )
        location = payload.get("location")
        current = payload.get("current")
        if not isinstance(location, dict):
            raise PayloadParseError("Weather proxy payload missing 'location' object.")
        if not isinstance(current, dict):
            raise PayloadParseError("Weather proxy payload missing 'current' object.")
        condition = current.get("condition")
        if not isinstance(condition, dict):
            raise PayloadParseError("Weather proxy payload missing 'current.condition' object.")

        try:
            return WeatherRecord(
                location=WeatherLocation(
                    name=name,
                    region=region,
                    country=country,
                    localtime=self._parse_localtime(location.get("localtime"), received_at),
                ),
                current=CurrentConditions(
                    temp_c=self._require_number(current, "temp_c"),
                    condition=WeatherCondition(
                        text=condition.get("text") or UNKNOWN_CONDITION.text,
                        icon=condition.get("icon") or UNKNOWN_CONDITION.icon,
                    ),
                    humidity=round(self._require_number(current, "humidity")),
                    wind_kph=self._require_number(current, "wind_kph"),
                    wind_dir=degrees_to_compass(self._require_number(current, "wind_degree")),
                    feelslike_c=self._require_number(current, "feelslike_c"),
                    vis_km=self._require_number(current, "vis_km"),
                    uv=self._require_number(current, "uv"),
                ),
            )
        except ValidationError as exc:
            raise PayloadParseError(f"Weather proxy values failed validation: {exc}") from exc

    @staticmethod
    def _require_number(current: dict[str, Any], field: str) -> float:
        value = current.get(field)
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or not math.isfinite(value)
        ):
            raise PayloadParseError(
                f"Weather proxy payload missing finite numeric 'current.{field}'."
            )
        return float(value)

    @staticmethod
    def _parse_localtime(value: Any, fallback: datetime) -> datetime:
        if isinstance(value, str) and value.strip():
            try:
                return datetime.strptime(value.strip(), _LOCALTIME_FORMAT)
            except ValueError:
                return fallback
        return fallback
