"""Debounced city search input with race-safe suggestion updates."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..exceptions import WeatherAppError
from ..models import City
from ..weather.base import CitySearchProvider
from .models import SearchState

SubmitCallback = Callable[[str], Awaitable[object]]

DEFAULT_DEBOUNCE_SECONDS = 0.3


class SearchInputController:
    """State holder for the city search box.

    Keystrokes restart a debounce timer. Each timer firing takes a new
    sequence number, and a lookup may only publish suggestions if its number
    is still the latest when it completes. Superseded lookups keep running
    but their results (and errors) are dropped, so a slow response for
    ``"Lon"`` can never overwrite the list for ``"London"``.

    Methods that schedule work (``on_input``) must be called from a running
    event loop.
    """

    def __init__(
        self,
        geocoder: CitySearchProvider,
        *,
        on_submit: SubmitCallback | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        min_query_length: int = 2,
        logger: logging.Logger | None = None,
    ) -> None:
        self.geocoder = geocoder
        self.on_submit = on_submit
        self.debounce_seconds = debounce_seconds
        self.min_query_length = min_query_length
        self.logger = logger or logging.getLogger("city_weather.search")

        self.query = ""
        self.suggestions: tuple[City, ...] = ()
        self.show_suggestions = False
        self.selected_city: City | None = None
        self.state = SearchState.IDLE
        self.is_fetching = False
        self.busy = False
        self.last_error: str | None = None

        self._sequence = 0
        self._timer: asyncio.TimerHandle | None = None
        self._lookups: set[asyncio.Task[None]] = set()

    @property
    def visible_suggestions(self) -> tuple[City, ...]:
        return self.suggestions if self.show_suggestions else ()

    @property
    def submission_text(self) -> str | None:
        """City name a submit would send, or None when there is nothing to send."""
        if self.selected_city is not None:
            return self.selected_city.name
        text = self.query.strip()
        return text or None

    @property
    def can_submit(self) -> bool:
        return not self.busy and self.submission_text is not None

    def on_input(self, text: str) -> None:
        """Record a keystroke and restart the debounce timer."""
        self._cancel_timer()
        self.query = text
        self.selected_city = None
        self.state = SearchState.TYPING
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._fire, text)

    def select(self, city: City) -> None:
        """Adopt a suggestion as the explicit selection."""
        self._cancel_timer()
        self._invalidate_lookups()
        self.selected_city = city
        self.query = city.label
        self.show_suggestions = False
        self.state = SearchState.SELECTED

    def dismiss(self) -> None:
        """Close the suggestion list (click outside) without touching the input."""
        self.show_suggestions = False
        if self.state == SearchState.SHOWING_SUGGESTIONS:
            self.state = SearchState.IDLE

    def focus(self) -> None:
        """Reopen the list when there are suggestions to show."""
        if not self.suggestions:
            return
        self.show_suggestions = True
        if self.state != SearchState.SELECTED:
            self.state = SearchState.SHOWING_SUGGESTIONS

    async def submit(self) -> str | None:
        """Submit the selection or the trimmed input text.

        Returns the submitted city name, or None when nothing was submitted
        because the input is empty or a previous submission is still running.
        """
        if self.busy:
            self.logger.info("Submit ignored: a weather request is already in flight")
            return None
        city = self.submission_text
        if city is None:
            return None
        if self.on_submit is None:
            return city

        self.busy = True
        try:
            await self.on_submit(city)
        finally:
            self.busy = False
        return city

    async def wait_idle(self) -> None:
        """Wait until no debounce timer is pending and no lookup is running."""
        loop = asyncio.get_running_loop()
        while self._timer is not None or self._lookups:
            if self._lookups:
                await asyncio.wait(set(self._lookups))
            elif self._timer is not None:
                await asyncio.sleep(max(self._timer.when() - loop.time(), 0))

    async def aclose(self) -> None:
        """Cancel the pending timer and any outstanding lookups."""
        self._cancel_timer()
        self._invalidate_lookups()
        lookups = list(self._lookups)
        for task in lookups:
            task.cancel()
        if lookups:
            await asyncio.gather(*lookups, return_exceptions=True)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _invalidate_lookups(self) -> None:
        self._sequence += 1
        self.is_fetching = False

    def _fire(self, query: str) -> None:
        self._timer = None
        self._sequence += 1
        token = self._sequence

        if len(query) < self.min_query_length:
            self.is_fetching = False
            self._replace_suggestions(())
            self.state = SearchState.IDLE
            return

        self.is_fetching = True
        self.state = SearchState.FETCHING
        task = asyncio.create_task(self._lookup(token, query))
        self._lookups.add(task)
        task.add_done_callback(self._lookups.discard)

    async def _lookup(self, token: int, query: str) -> None:
        try:
            cities = await self.geocoder.search_cities(query)
        except WeatherAppError as exc:
            self.logger.warning("Failed to fetch suggestions for %r: %s", query, exc)
            self._record_lookup_error(token, str(exc))
            return
        except Exception as exc:
            self.logger.exception("Unexpected suggestion lookup failure for %r", query)
            self._record_lookup_error(token, str(exc) or type(exc).__name__)
            return

        if token != self._sequence:
            self.logger.debug("Discarding stale suggestions for %r", query)
            return

        self.is_fetching = False
        self.last_error = None
        self._replace_suggestions(tuple(cities))
        self.state = SearchState.SHOWING_SUGGESTIONS if cities else SearchState.TYPING

    def _record_lookup_error(self, token: int, message: str) -> None:
        if token != self._sequence:
            return
        self.is_fetching = False
        self.last_error = message
        self.state = SearchState.TYPING

    def _replace_suggestions(self, cities: tuple[City, ...]) -> None:
        self.suggestions = cities
        self.show_suggestions = bool(cities)
