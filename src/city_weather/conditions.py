"""Weather-code, wind-direction, and unit helpers for display normalization."""

from __future__ import annotations

import math
from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict


class WeatherCondition(BaseModel):
    """Human-readable condition text with an icon."""

    model_config = ConfigDict(frozen=True)

    text: str
    icon: str


COMPASS_POINTS: tuple[str, ...] = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)
_SECTOR_DEGREES = 360.0 / len(COMPASS_POINTS)

UNKNOWN_CONDITION = WeatherCondition(text="Unknown", icon="❓")

# WMO weather interpretation codes as reported by Open-Meteo.
WEATHER_CODES: Mapping[int, WeatherCondition] = MappingProxyType(
    {
        0: WeatherCondition(text="Clear sky", icon="☀️"),
        1: WeatherCondition(text="Mainly clear", icon="🌤️"),
        2: WeatherCondition(text="Partly cloudy", icon="⛅"),
        3: WeatherCondition(text="Overcast", icon="☁️"),
        45: WeatherCondition(text="Foggy", icon="🌫️"),
        48: WeatherCondition(text="Depositing rime fog", icon="🌫️"),
        51: WeatherCondition(text="Light drizzle", icon="🌧️"),
        53: WeatherCondition(text="Moderate drizzle", icon="🌧️"),
        55: WeatherCondition(text="Dense drizzle", icon="🌧️"),
        56: WeatherCondition(text="Light freezing drizzle", icon="🌧️"),
        57: WeatherCondition(text="Dense freezing drizzle", icon="🌧️"),
        61: WeatherCondition(text="Slight rain", icon="🌧️"),
        63: WeatherCondition(text="Moderate rain", icon="🌧️"),
        65: WeatherCondition(text="Heavy rain", icon="🌧️"),
        66: WeatherCondition(text="Light freezing rain", icon="🌧️"),
        67: WeatherCondition(text="Heavy freezing rain", icon="🌧️"),
        71: WeatherCondition(text="Slight snow", icon="🌨️"),
        73: WeatherCondition(text="Moderate snow", icon="🌨️"),
        75: WeatherCondition(text="Heavy snow", icon="🌨️"),
        77: WeatherCondition(text="Snow grains", icon="🌨️"),
        80: WeatherCondition(text="Slight rain showers", icon="🌦️"),
        81: WeatherCondition(text="Moderate rain showers", icon="🌦️"),
        82: WeatherCondition(text="Violent rain showers", icon="🌦️"),
        85: WeatherCondition(text="Slight snow showers", icon="🌨️"),
        86: WeatherCondition(text="Heavy snow showers", icon="🌨️"),
        95: WeatherCondition(text="Thunderstorm", icon="⛈️"),
        96: WeatherCondition(text="Thunderstorm with slight hail", icon="⛈️"),
        99: WeatherCondition(text="Thunderstorm with heavy hail", icon="⛈️"),
    }
)


def map_weather_code(code: int) -> WeatherCondition:
    """Return display text and icon for a WMO code, or the unknown fallback."""
    return WEATHER_CODES.get(code, UNKNOWN_CONDITION)


def degrees_to_compass(degrees: float) -> str:
    """Map a wind bearing to the nearest of 16 compass points.

    Halfway bearings round up (clockwise), and any real value is accepted:
    negative and >360 bearings wrap.
    """
    sector = math.floor(degrees / _SECTOR_DEGREES + 0.5)
    return COMPASS_POINTS[sector % len(COMPASS_POINTS)]


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9 / 5 + 32
