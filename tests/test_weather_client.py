"""Tests for the Open-Meteo current-conditions client."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

import httpx
import pytest

from city_weather.conditions import celsius_to_fahrenheit
from city_weather.exceptions import (
    CityNotFoundError,
    PayloadParseError,
    QueryValidationError,
    WeatherFetchError,
)
from city_weather.models import City
from city_weather.weather.base import CitySearchProvider
from city_weather.weather.forecast import CURRENT_FIELDS, OpenMeteoWeatherClient

FIXED_NOW = datetime(2026, 3, 2, 14, 30, tzinfo=UTC)

FORECAST_PAYLOAD: dict[str, Any] = {
    "latitude": 51.5,
    "longitude": -0.120000124,
    "timezone": "Europe/London",
    "current": {
        "time": "2026-03-02T14:30",
        "interval": 900,
        "temperature_2m": 12.4,
        "relative_humidity_2m": 71,
        "apparent_temperature": 10.6,
        "weather_code": 3,
        "wind_speed_10m": 14.8,
        "wind_direction_10m": 247,
    },
    "daily": {"time": ["2026-03-02"], "uv_index_max": [2.35]},
}


def _make_settings(**overrides: Any) -> Any:
    defaults = {
        "timeout_seconds": 5.0,
        "geocoding_base_url": "https://geocoding.test/v1",
        "forecast_base_url": "https://forecast.test/v1",
        "search_result_limit": 5,
        "search_language": "en",
        "search_min_query_length": 2,
        "visibility_placeholder_km": 10.0,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


class _StaticGeocoder(CitySearchProvider):
    provider_name = "static"

    def __init__(self, cities: list[City]) -> None:
        self.cities = cities
        self.queries: list[str] = []

    async def search_cities(self, query: str) -> list[City]:
        self.queries.append(query)
        return list(self.cities)

    async def aclose(self) -> None:
        return None


def _run_with_client(
    handler: Any,
    action: Any,
    *,
    geocoder: CitySearchProvider | None = None,
) -> Any:
    async def _run() -> Any:
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            client = OpenMeteoWeatherClient(
                _make_settings(),
                logging.getLogger("test_weather_client"),
                geocoder=geocoder,
                client=http_client,
                clock=lambda: FIXED_NOW,
            )
            return await action(client)

    return asyncio.run(_run())


def _fetch_london(payload: Any, status: int = 200) -> Any:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=payload)

    return _run_with_client(
        handler,
        lambda client: client.fetch_weather_by_coords(
            51.5085, -0.1257, "London", "England", "United Kingdom"
        ),
    )


def test_fetch_by_coords_builds_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=FORECAST_PAYLOAD)

    _run_with_client(
        handler,
        lambda client: client.fetch_weather_by_coords(
            51.5085, -0.1257, "London", "England", "United Kingdom"
        ),
    )

    assert len(seen) == 1
    params = seen[0].url.params
    assert seen[0].url.path == "/v1/forecast"
    assert params["latitude"] == "51.5085"
    assert params["longitude"] == "-0.1257"
    assert params["current"] == ",".join(CURRENT_FIELDS)
    assert params["daily"] == "uv_index_max"
    assert params["timezone"] == "auto"


def test_fetch_by_coords_normalizes_payload() -> None:
    record = _fetch_london(FORECAST_PAYLOAD)

    assert record.location.name == "London"
    assert record.location.region == "England"
    assert record.location.country == "United Kingdom"
    assert record.location.localtime == FIXED_NOW

    current = record.current
    assert current.temp_c == pytest.approx(12.4)
    assert current.feelslike_c == pytest.approx(10.6)
    assert current.condition.text == "Overcast"
    assert current.condition.icon == "☁️"
    assert current.humidity == 71
    assert current.wind_kph == pytest.approx(14.8)
    assert current.wind_dir == "WSW"
    assert current.vis_km == 10.0
    assert current.uv == pytest.approx(2.35)


def test_fahrenheit_values_follow_celsius() -> None:
    for temp, feels in [(12.4, 10.6), (-7.25, -13.0), (0, 0), (38.9, 44.1)]:
        payload = copy.deepcopy(FORECAST_PAYLOAD)
        payload["current"]["temperature_2m"] = temp
        payload["current"]["apparent_temperature"] = feels
        record = _fetch_london(payload)
        assert record.current.temp_f == pytest.approx(celsius_to_fahrenheit(record.current.temp_c))
        assert record.current.feelslike_f == pytest.approx(
            celsius_to_fahrenheit(record.current.feelslike_c)
        )
        dumped = record.model_dump()
        assert dumped["current"]["temp_f"] == pytest.approx(temp * 9 / 5 + 32)


def test_unknown_weather_code_uses_fallback() -> None:
    payload = copy.deepcopy(FORECAST_PAYLOAD)
    payload["current"]["weather_code"] = 42
    record = _fetch_london(payload)
    assert record.current.condition.text == "Unknown"


def test_null_uv_entry_maps_to_zero() -> None:
    payload = copy.deepcopy(FORECAST_PAYLOAD)
    payload["daily"]["uv_index_max"] = [None]
    record = _fetch_london(payload)
    assert record.current.uv == 0.0


@pytest.mark.parametrize("field", list(CURRENT_FIELDS))
def test_missing_current_field_raises_parse_error(field: str) -> None:
    payload = copy.deepcopy(FORECAST_PAYLOAD)
    del payload["current"][field]
    with pytest.raises(PayloadParseError, match=field):
        _fetch_london(payload)


def test_missing_daily_uv_raises_parse_error() -> None:
    payload = copy.deepcopy(FORECAST_PAYLOAD)
    payload["daily"] = {"time": ["2026-03-02"]}
    with pytest.raises(PayloadParseError, match="uv_index_max"):
        _fetch_london(payload)


def test_missing_current_block_raises_parse_error() -> None:
    with pytest.raises(PayloadParseError, match="'current'"):
        _fetch_london({"daily": {"uv_index_max": [1.0]}})


def test_non_success_status_raises_weather_fetch_error() -> None:
    with pytest.raises(WeatherFetchError) as exc_info:
        _fetch_london({"error": True, "reason": "Latitude must be in range"}, status=400)
    assert not isinstance(exc_info.value, PayloadParseError)
    assert exc_info.value.category == "upstream"
    assert exc_info.value.status_code == 400


def test_out_of_range_coordinates_rejected_before_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(QueryValidationError):
        _run_with_client(
            handler,
            lambda client: client.fetch_weather_by_coords(95.0, 0.0, "X", "", "Y"),
        )


def test_fetch_by_city_uses_first_match() -> None:
    geocoder = _StaticGeocoder(
        [
            City(id=1, name="Paris", region="Île-de-France", country="France",
                 latitude=48.85341, longitude=2.3488),
            City(id=2, name="Paris", region="Texas", country="United States",
                 latitude=33.66094, longitude=-95.55551),
        ]
    )
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=FORECAST_PAYLOAD)

    record = _run_with_client(
        handler,
        lambda client: client.fetch_weather_by_city("Paris"),
        geocoder=geocoder,
    )

    assert geocoder.queries == ["Paris"]
    assert seen[0].url.params["latitude"] == "48.85341"
    assert record.location.name == "Paris"
    assert record.location.region == "Île-de-France"
    assert record.location.country == "France"


def test_fetch_by_city_without_match_raises_city_not_found() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no forecast request expected")

    with pytest.raises(CityNotFoundError):
        _run_with_client(
            handler,
            lambda client: client.fetch_weather_by_city("Atlantis"),
            geocoder=_StaticGeocoder([]),
        )


def test_fetch_by_city_with_default_geocoder_shares_http_client() -> None:
    paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.host == "geocoding.test":
            return httpx.Response(
                200,
                json={
                    "results": [
                        {
                            "id": 2988507,
                            "name": "Paris",
                            "latitude": 48.85341,
                            "longitude": 2.3488,
                            "country": "France",
                            "admin1": "Île-de-France",
                        }
                    ]
                },
            )
        return httpx.Response(200, json=FORECAST_PAYLOAD)

    record = _run_with_client(handler, lambda client: client.fetch_weather_by_city("Paris"))
    assert paths == ["/v1/search", "/v1/forecast"]
    assert record.location.name == "Paris"


def _fetch_london_raw(body: str) -> Any:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, content=body.encode("utf-8"), headers={"Content-Type": "application/json"}
        )

    return _run_with_client(
        handler,
        lambda client: client.fetch_weather_by_coords(
            51.5085, -0.1257, "London", "England", "United Kingdom"
        ),
    )


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("wind_direction_10m", float("nan")),
        ("weather_code", float("inf")),
        ("temperature_2m", float("-inf")),
    ],
)
def test_non_finite_current_value_raises_parse_error(field: str, value: float) -> None:
    payload = copy.deepcopy(FORECAST_PAYLOAD)
    payload["current"][field] = value
    # The provider's JSON decoder accepts bare NaN/Infinity tokens.
    with pytest.raises(PayloadParseError, match=field):
        _fetch_london_raw(json.dumps(payload))


def test_non_finite_uv_raises_parse_error() -> None:
    payload = copy.deepcopy(FORECAST_PAYLOAD)
    payload["daily"]["uv_index_max"] = [float("nan")]
    with pytest.raises(PayloadParseError, match="uv_index_max"):
        _fetch_london_raw(json.dumps(payload))
