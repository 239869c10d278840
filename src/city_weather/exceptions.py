"""Application exception classes."""


class WeatherAppError(Exception):
    """Base class for every failure surfaced by the city weather package."""


class ConfigurationError(WeatherAppError):
    """Raised when configuration is invalid or a required credential is missing."""


class QueryValidationError(WeatherAppError):
    """Raised when a city query breaks length or character constraints."""


class NotFoundError(WeatherAppError):
    """Raised when a lookup produced no matching entity."""


class CityNotFoundError(NotFoundError):
    """Raised when geocoding returns no candidates for a city name."""


class ProviderRequestError(WeatherAppError):
    """Raised for provider request failures with category/status metadata."""

    def __init__(
        self,
        message: str,
        *,
        category: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.status_code = status_code


class GeocodingError(ProviderRequestError):
    """Raised when a city search request fails or returns malformed data."""


class WeatherFetchError(ProviderRequestError):
    """Raised when a current-conditions request fails."""


class PayloadParseError(WeatherFetchError):
    """Raised when a weather payload is missing expected fields."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category="parse")


class UpstreamError(WeatherAppError):
    """Raised by the proxy when the upstream provider answers with an error."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(WeatherAppError):
    """Raised by the proxy when the upstream provider cannot be reached."""
