"""Input validation for proxied city queries."""

from __future__ import annotations

import re

from ..exceptions import QueryValidationError

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 100

# Unicode letters and digits (word characters minus underscore), whitespace,
# comma, period, hyphen and apostrophe.
_QUERY_RE = re.compile(r"^(?:[^\W_]|[\s,.\-'])+$")


def validate_query(query: str) -> str:
    """Return ``query`` unchanged or raise QueryValidationError."""
    if len(query) < MIN_QUERY_LENGTH:
        raise QueryValidationError(f"Query must be at least {MIN_QUERY_LENGTH} characters")
    if len(query) > MAX_QUERY_LENGTH:
        raise QueryValidationError(f"Query must be at most {MAX_QUERY_LENGTH} characters")
    if not _QUERY_RE.match(query):
        raise QueryValidationError("Query contains invalid characters")
    return query
