"""Serverless-style proxy that hides the weather provider credential."""

from .cors import cors_headers, resolve_allowed_origin
from .handler import ProxyRequest, ProxyResponse, WeatherProxy
from .validation import validate_query

__all__ = [
    "ProxyRequest",
    "ProxyResponse",
    "WeatherProxy",
    "cors_headers",
    "resolve_allowed_origin",
    "validate_query",
]
