"""Open-Meteo current-conditions client."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import ValidationError

from ..conditions import degrees_to_compass, map_weather_code
from ..config import Settings
from ..exceptions import PayloadParseError, QueryValidationError, WeatherFetchError
from ..models import CurrentConditions, WeatherLocation, WeatherRecord
from .base import CitySearchProvider, WeatherProvider
from .geocoding import OpenMeteoGeocodingClient
from .http import build_client, request_json

CURRENT_FIELDS: tuple[str, ...] = (
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "weather_code",
    "wind_speed_10m",
    "wind_direction_10m",
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def validate_coordinates(latitude: float, longitude: float) -> None:
    if not (-90 <= latitude <= 90):
        raise QueryValidationError(f"Invalid latitude {latitude}; expected between -90 and 90.")
    if not (-180 <= longitude <= 180):
        raise QueryValidationError(
            f"Invalid longitude {longitude}; expected between -180 and 180."
        )


class OpenMeteoWeatherClient(WeatherProvider):
    """Fetches current conditions plus the day's UV maximum from Open-Meteo.

    Open-Meteo reports neither visibility nor a local wall-clock time for the
    current block, so ``vis_km`` is the configured placeholder and
    ``localtime`` is the moment the response arrived.
    """

    provider_name = "open-meteo"

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
        self._clock = clock
        self._owns_client = client is None
        self._client = client or build_client(settings.timeout_seconds)
        self._owns_geocoder = geocoder is None
        self.geocoder = geocoder or OpenMeteoGeocodingClient(
            settings, logger, client=self._client
        )

    async def aclose(self) -> None:
        if self._owns_geocoder:
            await self.geocoder.aclose()
        if self._owns_client:
            await self._client.aclose()

    @property
    def forecast_url(self) -> str:
        return f"{self.settings.forecast_base_url.rstrip('/')}/forecast"

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
            self.forecast_url,
            params={
                "latitude": latitude,
                "longitude": longitude,
                "current": ",".join(CURRENT_FIELDS),
                "daily": "uv_index_max",
                "timezone": "auto",
            },
            context="current conditions fetch",
            provider="Open-Meteo",
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
        """Map a raw forecast payload onto a WeatherRecord."""
        if not isinstance(payload, dict):
            raise PayloadParseError(
                f"Open-Meteo forecast returned unexpected payload type {type(payload).__name__}."
            )
        current = payload.get("current")
        if not isinstance(current, dict):
            raise PayloadParseError("Open-Meteo forecast payload missing 'current' object.")

        values = {field: self._require_number(current, field) for field in CURRENT_FIELDS}
        uv = self._extract_uv(payload)

        try:
            return WeatherRecord(
                location=WeatherLocation(
                    name=name,
                    region=region,
                    country=country,
                    localtime=received_at,
                ),
                current=CurrentConditions(
                    temp_c=values["temperature_2m"],
                    condition=map_weather_code(int(values["weather_code"])),
                    humidity=round(values["relative_humidity_2m"]),
                    wind_kph=values["wind_speed_10m"],
                    wind_dir=degrees_to_compass(values["wind_direction_10m"]),
                    feelslike_c=values["apparent_temperature"],
                    vis_km=self.settings.visibility_placeholder_km,
                    uv=uv,
                ),
            )
        except ValidationError as exc:
            raise PayloadParseError(f"Open-Meteo forecast values failed validation: {exc}") from exc

    @staticmethod
    def _require_number(current: dict[str, Any], field: str) -> float:
        value = current.get(field)
        # bool is an int subclass but never a valid measurement.
        if (
            isinstance(value, bool)
            or not isinstance(value, (int, float))
            or not math.isfinite(value)
        ):
            raise PayloadParseError(
                f"Open-Meteo forecast payload missing finite numeric 'current.{field}'."
            )
        return float(value)

    @staticmethod
    def _extract_uv(payload: dict[str, Any]) -> float:
        daily = payload.get("daily")
        if not isinstance(daily, dict):
            raise PayloadParseError("Open-Meteo forecast payload missing 'daily' object.")
        series = daily.get("uv_index_max")
        if not isinstance(series, list) or not series:
            raise PayloadParseError(
                "Open-Meteo forecast payload missing 'daily.uv_index_max' values."
            )
        first = series[0]
        if first is None:
            return 0.0
        if (
            isinstance(first, bool)
            or not isinstance(first, (int, float))
            or not math.isfinite(first)
        ):
            raise PayloadParseError(
                "Open-Meteo 'daily.uv_index_max[0]' is not a finite number."
            )
        return float(first)
