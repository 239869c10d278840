"""CORS header selection for the weather proxy."""

from __future__ import annotations

from collections.abc import Sequence

ALLOWED_METHODS = "GET, POST, OPTIONS"
ALLOWED_HEADERS = "authorization, x-client-info, apikey, content-type"


def resolve_allowed_origin(
    origin: str | None,
    allowed_origins: Sequence[str],
    trusted_suffixes: Sequence[str],
) -> str:
    """Echo a trusted request origin, otherwise fall back to the first allowed one."""
    if origin:
        if origin in allowed_origins:
            return origin
        if any(origin.endswith(suffix) for suffix in trusted_suffixes):
            return origin
    return allowed_origins[0]


def cors_headers(
    origin: str | None,
    allowed_origins: Sequence[str],
    trusted_suffixes: Sequence[str],
) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": resolve_allowed_origin(
            origin, allowed_origins, trusted_suffixes
        ),
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Vary": "Origin",
    }
