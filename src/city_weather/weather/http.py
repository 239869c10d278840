"""Shared async JSON request helper for weather providers."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..exceptions import ProviderRequestError
from ..redaction import sanitize_text

USER_AGENT = "city-weather/0.1"


def build_client(timeout_seconds: float) -> httpx.AsyncClient:
    """Create the default HTTP client used when none is injected."""
    return httpx.AsyncClient(
        timeout=timeout_seconds,
        headers={"Accept": "application/json", "User-Agent": USER_AGENT},
    )


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:300]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, str) and error.strip():
            return error.strip()
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        reason = body.get("reason")
        if isinstance(reason, str) and reason.strip():
            return reason.strip()
    return response.text[:300]


async def request_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any],
    context: str,
    provider: str,
    error_cls: type[ProviderRequestError],
    logger: logging.Logger,
) -> Any:
    """GET ``url`` and decode its JSON body.

    Transport failures, non-2xx statuses and undecodable bodies are raised as
    ``error_cls`` tagged with category ``network``, ``upstream`` or ``parse``.
    No retries are attempted.
    """
    try:
        response = await client.get(url, params=params)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        detail = sanitize_text(_error_detail(exc.response))
        logger.warning("%s %s failed (HTTP %d): %s", provider, context, status, detail)
        raise error_cls(
            f"{provider} {context} failed with status {status}: {detail}",
            category="upstream",
            status_code=status,
        ) from exc
    except httpx.HTTPError as exc:
        logger.warning("%s %s request failed (%s)", provider, context, type(exc).__name__)
        raise error_cls(
            f"{provider} {context} request failed: {sanitize_text(str(exc)) or type(exc).__name__}",
            category="network",
        ) from exc

    try:
        return response.json()
    except ValueError as exc:
        raise error_cls(
            f"{provider} {context} returned a non-JSON response.",
            category="parse",
            status_code=response.status_code,
        ) from exc
