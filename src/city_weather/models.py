"""Typed models for geocoded cities and normalized weather records."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .conditions import COMPASS_POINTS, WeatherCondition, celsius_to_fahrenheit


class City(BaseModel):
    """One geocoding candidate, ordered as ranked by the provider."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    region: str = ""
    country: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    @property
    def label(self) -> str:
        """Canonical ``name, country`` text used to fill the search input."""
        return f"{self.name}, {self.country}"

    @property
    def display_name(self) -> str:
        parts = [self.name, self.region, self.country]
        return ", ".join(part for part in parts if part)


class WeatherLocation(BaseModel):
    """Location metadata attached to a weather record."""

    model_config = ConfigDict(frozen=True)

    name: str
    region: str = ""
    country: str
    localtime: datetime


class CurrentConditions(BaseModel):
    """Display-ready current conditions.

    Fahrenheit values are computed from the Celsius ones so the two can never
    disagree.
    """

    model_config = ConfigDict(frozen=True)

    temp_c: float
    condition: WeatherCondition
    humidity: int = Field(ge=0, le=100)
    wind_kph: float = Field(ge=0)
    wind_dir: str
    feelslike_c: float
    vis_km: float = Field(ge=0)
    uv: float = Field(ge=0)

    @field_validator("wind_dir")
    @classmethod
    def known_compass_point(cls, value: str) -> str:
        if value not in COMPASS_POINTS:
            raise ValueError(f"wind_dir must be one of {COMPASS_POINTS}, got {value!r}")
        return value

    @computed_field  # type: ignore[prop-decorator]
    @property
    def temp_f(self) -> float:
        return celsius_to_fahrenheit(self.temp_c)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def feelslike_f(self) -> float:
        return celsius_to_fahrenheit(self.feelslike_c)


class WeatherRecord(BaseModel):
    """Normalized weather snapshot consumed by the weather panel."""

    model_config = ConfigDict(frozen=True)

    location: WeatherLocation
    current: CurrentConditions
