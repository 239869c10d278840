"""Typed settings loaders for the weather client and the proxy endpoint."""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import AnyUrl, Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .exceptions import ConfigurationError

# The first entry is the fallback origin for untrusted requests.
DEFAULT_ALLOWED_ORIGINS: tuple[str, ...] = (
    "https://qlubcsbwtcqnbcvgcyfm.lovableproject.com",
    "https://lovable.dev",
    "http://localhost:8080",
    "http://localhost:5173",
    "http://localhost:3000",
)
DEFAULT_TRUSTED_ORIGIN_SUFFIXES: tuple[str, ...] = (".lovable.app", ".lovableproject.com")


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    return value


class Settings(BaseSettings):
    """Client-side settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    provider_mode: Literal["direct", "proxy"] = Field(
        default="direct",
        alias="WEATHER_PROVIDER_MODE",
    )
    proxy_url: AnyUrl | None = Field(default=None, alias="WEATHER_PROXY_URL")
    geocoding_base_url: str = Field(
        default="https://geocoding-api.open-meteo.com/v1",
        alias="GEOCODING_BASE_URL",
    )
    forecast_base_url: str = Field(
        default="https://api.open-meteo.com/v1",
        alias="FORECAST_BASE_URL",
    )
    timeout_seconds: float = Field(default=10.0, alias="WEATHER_TIMEOUT_SECONDS")

    search_result_limit: int = Field(default=5, alias="SEARCH_RESULT_LIMIT")
    search_language: str = Field(default="en", alias="SEARCH_LANGUAGE")
    search_min_query_length: int = Field(default=2, alias="SEARCH_MIN_QUERY_LENGTH")
    search_debounce_ms: int = Field(default=300, alias="SEARCH_DEBOUNCE_MS")

    visibility_placeholder_km: float = Field(default=10.0, alias="VISIBILITY_PLACEHOLDER_KM")

    @field_validator("proxy_url", mode="before")
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat an empty env-string value as an unset proxy URL."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_values(self) -> Settings:
        """Validate cross-field constraints."""
        if self.provider_mode == "proxy" and self.proxy_url is None:
            raise ValueError("WEATHER_PROXY_URL is required when WEATHER_PROVIDER_MODE='proxy'.")
        for name, url in (
            ("GEOCODING_BASE_URL", self.geocoding_base_url),
            ("FORECAST_BASE_URL", self.forecast_base_url),
        ):
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"{name} must be an http(s) URL.")
        if self.timeout_seconds <= 0:
            raise ValueError("WEATHER_TIMEOUT_SECONDS must be > 0.")
        if not (1 <= self.search_result_limit <= 100):
            raise ValueError("SEARCH_RESULT_LIMIT must be between 1 and 100.")
        if self.search_min_query_length < 1:
            raise ValueError("SEARCH_MIN_QUERY_LENGTH must be >= 1.")
        if self.search_debounce_ms < 0:
            raise ValueError("SEARCH_DEBOUNCE_MS must be >= 0.")
        if self.visibility_placeholder_km < 0:
            raise ValueError("VISIBILITY_PLACEHOLDER_KM must be >= 0.")
        return self

    @property
    def debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000.0

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging."""
        return {
            "provider_mode": self.provider_mode,
            "proxy_url": str(self.proxy_url) if self.proxy_url else None,
            "geocoding_base_url": self.geocoding_base_url,
            "forecast_base_url": self.forecast_base_url,
            "timeout_seconds": self.timeout_seconds,
            "search_result_limit": self.search_result_limit,
            "search_debounce_ms": self.search_debounce_ms,
        }


class ProxySettings(BaseSettings):
    """Server-side settings for the weather proxy endpoint."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    weather_api_key: SecretStr | None = Field(
        default=None, alias="WEATHER_API_KEY", repr=False
    )
    upstream_base_url: str = Field(
        default="https://api.weatherapi.com/v1",
        alias="WEATHER_API_BASE_URL",
    )
    allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=DEFAULT_ALLOWED_ORIGINS,
        alias="PROXY_ALLOWED_ORIGINS",
    )
    trusted_origin_suffixes: Annotated[tuple[str, ...], NoDecode] = Field(
        default=DEFAULT_TRUSTED_ORIGIN_SUFFIXES,
        alias="PROXY_TRUSTED_ORIGIN_SUFFIXES",
    )
    timeout_seconds: float = Field(default=10.0, alias="PROXY_TIMEOUT_SECONDS")

    @field_validator("weather_api_key", mode="before")
    @classmethod
    def blank_key_to_none(cls, value: Any) -> Any:
        """A blank key is the same as no key."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("allowed_origins", "trusted_origin_suffixes", mode="before")
    @classmethod
    def parse_csv(cls, value: Any) -> Any:
        """Accept comma-separated strings from the environment."""
        return _split_csv(value)

    @model_validator(mode="after")
    def validate_values(self) -> ProxySettings:
        """Validate proxy constraints."""
        if not self.allowed_origins:
            raise ValueError("PROXY_ALLOWED_ORIGINS must list at least one origin.")
        if not self.upstream_base_url.startswith(("http://", "https://")):
            raise ValueError("WEATHER_API_BASE_URL must be an http(s) URL.")
        if self.timeout_seconds <= 0:
            raise ValueError("PROXY_TIMEOUT_SECONDS must be > 0.")
        return self

    @property
    def api_key(self) -> str | None:
        if self.weather_api_key is None:
            return None
        return self.weather_api_key.get_secret_value()

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for logging (no credentials)."""
        return {
            "api_key_configured": self.weather_api_key is not None,
            "upstream_base_url": self.upstream_base_url,
            "allowed_origins": list(self.allowed_origins),
            "trusted_origin_suffixes": list(self.trusted_origin_suffixes),
            "timeout_seconds": self.timeout_seconds,
        }


def load_settings(**overrides: Any) -> Settings:
    """Load and validate client settings, raising ConfigurationError on failure."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Failed reading environment/.env: {exc}") from exc


def load_proxy_settings(**overrides: Any) -> ProxySettings:
    """Load and validate proxy settings, raising ConfigurationError on failure."""
    try:
        return ProxySettings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid proxy configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"Failed reading environment/.env: {exc}") from exc
