"""Weather proxy request handler.

The handler is framework-agnostic: a host runtime turns its HTTP request into
a ``ProxyRequest``, awaits ``WeatherProxy.handle`` and writes the returned
``ProxyResponse`` back out. The upstream credential comes from injected
``ProxySettings``; it is never read from process globals here.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..config import ProxySettings
from ..exceptions import (
    ConfigurationError,
    NetworkError,
    QueryValidationError,
    UpstreamError,
)
from ..redaction import sanitize_text
from .cors import cors_headers
from .validation import validate_query

DEFAULT_UPSTREAM_ERROR = "Failed to fetch weather data"


@dataclass(frozen=True, slots=True)
class ProxyRequest:
    """Minimal view of an incoming HTTP request."""

    method: str = "GET"
    params: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


@dataclass(frozen=True, slots=True)
class ProxyResponse:
    """Status, headers and a JSON-serializable body (``None`` for empty)."""

    status_code: int
    headers: dict[str, str]
    body: Any = None

    def json(self) -> str:
        if self.body is None:
            return ""
        return json.dumps(self.body, ensure_ascii=False)


class WeatherProxy:
    """Validates city queries and forwards them to the keyed weather provider."""

    def __init__(
        self,
        settings: ProxySettings,
        logger: logging.Logger,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.timeout_seconds)

    @classmethod
    def from_settings(
        cls,
        settings: ProxySettings,
        logger: logging.Logger,
        *,
        require_api_key: bool = False,
        client: httpx.AsyncClient | None = None,
    ) -> WeatherProxy:
        """Build a proxy, optionally failing at startup when no key is configured."""
        if require_api_key and settings.api_key is None:
            raise ConfigurationError("WEATHER_API_KEY is not configured.")
        return cls(settings, logger, client=client)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> WeatherProxy:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        await self.aclose()

    def build_upstream_url(self, action: str | None, query: str, api_key: str) -> httpx.URL:
        """Return the provider URL for a search or current-conditions request."""
        endpoint = "search.json" if action == "search" else "current.json"
        base = self.settings.upstream_base_url.rstrip("/")
        return httpx.URL(f"{base}/{endpoint}", params={"key": api_key, "q": query})

    async def handle(self, request: ProxyRequest) -> ProxyResponse:
        """Serve one request; every failure becomes a JSON error response."""
        headers = cors_headers(
            request.header("Origin"),
            self.settings.allowed_origins,
            self.settings.trusted_origin_suffixes,
        )
        method = request.method.upper()
        if method == "OPTIONS":
            return ProxyResponse(status_code=200, headers=headers)
        if method not in {"GET", "POST"}:
            return self._error(405, f"Method {method} not allowed", headers)

        try:
            query = request.params.get("q")
            if not query:
                return self._error(400, 'Query parameter "q" is required', headers)
            try:
                validate_query(query)
            except QueryValidationError as exc:
                self.logger.warning("Invalid query rejected: %r", query[:50])
                return self._error(400, str(exc), headers)

            api_key = self.settings.api_key
            if api_key is None:
                self.logger.error("WEATHER_API_KEY is not configured")
                return self._error(500, "Weather API key not configured", headers)

            action = request.params.get("action")
            url = self.build_upstream_url(action, query, api_key)
            context = {"endpoint": url.path, "origin": request.header("Origin")}
            if action == "search":
                self.logger.info("Searching cities for: %s", query, extra=context)
            else:
                self.logger.info("Fetching weather for: %s", query, extra=context)

            data = await self._forward(url)
        except UpstreamError as exc:
            return self._error(exc.status_code, str(exc), headers)
        except NetworkError as exc:
            return self._error(502, str(exc), headers)
        except Exception as exc:  # pragma: no cover - last-resort boundary for the host runtime
            self.logger.exception("Error in weather proxy: %s", exc)
            return self._error(500, sanitize_text(str(exc)) or "Unknown error", headers)

        self.logger.info("Successfully fetched upstream data")
        return self._json(200, data, headers)

    async def _forward(self, url: httpx.URL) -> Any:
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            self.logger.error(
                "Upstream request failed (%s): %s",
                type(exc).__name__,
                sanitize_text(str(url)),
            )
            raise NetworkError(
                f"Upstream weather provider unreachable ({type(exc).__name__})"
            ) from exc

        if not response.is_success:
            try:
                message = self._upstream_message(response.json())
            except ValueError:
                message = DEFAULT_UPSTREAM_ERROR
            self.logger.error("Upstream error (HTTP %d): %s", response.status_code, message)
            raise UpstreamError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            self.logger.error("Upstream returned non-JSON (HTTP %d)", response.status_code)
            raise UpstreamError(
                "Upstream weather provider returned an invalid response",
                status_code=502,
            ) from exc

    @staticmethod
    def _upstream_message(data: Any) -> str:
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict):
                message = error.get("message")
                if isinstance(message, str) and message.strip():
                    return message
        return DEFAULT_UPSTREAM_ERROR

    @staticmethod
    def _json(status_code: int, body: Any, headers: dict[str, str]) -> ProxyResponse:
        return ProxyResponse(
            status_code=status_code,
            headers={**headers, "Content-Type": "application/json"},
            body=body,
        )

    def _error(self, status_code: int, message: str, headers: dict[str, str]) -> ProxyResponse:
        return self._json(status_code, {"error": message}, headers)
