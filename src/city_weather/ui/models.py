"""Typed state models for terminal presentation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

Severity = Literal["INFO", "WARN", "ERROR"]


class SearchState(str, Enum):
    """Lifecycle of the city search input."""

    IDLE = "idle"
    TYPING = "typing"
    FETCHING = "fetching"
    SHOWING_SUGGESTIONS = "showing_suggestions"
    SELECTED = "selected"


@dataclass(frozen=True, slots=True)
class Notification:
    """One user-visible inline notice."""

    title: str
    message: str
    severity: Severity = "ERROR"
    detail: str | None = None
    ts: datetime = field(default_factory=lambda: datetime.now(UTC))
