"""Tests for the debounced, race-safe city search controller."""

from __future__ import annotations

import asyncio
import logging

from city_weather.exceptions import GeocodingError
from city_weather.models import City
from city_weather.ui.models import SearchState
from city_weather.ui.search import SearchInputController
from city_weather.weather.base import CitySearchProvider

LONDON_UK = City(id=1, name="London", region="England", country="United Kingdom",
                 latitude=51.50853, longitude=-0.12574)
LONDON_CA = City(id=2, name="London", region="Ontario", country="Canada",
                 latitude=42.98339, longitude=-81.23304)
LONGYEARBYEN = City(id=3, name="Longyearbyen", region="Svalbard", country="Svalbard and Jan Mayen",
                    latitude=78.2232, longitude=15.6267)


class _GatedGeocoder(CitySearchProvider):
    """Returns canned results, but only once the test releases each query."""

    provider_name = "gated"

    def __init__(self, results: dict[str, list[City]]) -> None:
        self.results = results
        self.gates: dict[str, asyncio.Event] = {}
        self.started: list[str] = []

    def gate(self, query: str) -> asyncio.Event:
        return self.gates.setdefault(query, asyncio.Event())

    async def search_cities(self, query: str) -> list[City]:
        self.started.append(query)
        await self.gate(query).wait()
        return list(self.results.get(query, []))

    async def aclose(self) -> None:
        return None


class _InstantGeocoder(CitySearchProvider):
    provider_name = "instant"

    def __init__(self, results: dict[str, list[City]], fail: bool = False) -> None:
        self.results = results
        self.fail = fail
        self.queries: list[str] = []

    async def search_cities(self, query: str) -> list[City]:
        self.queries.append(query)
        if self.fail:
            raise GeocodingError("geocoding unavailable", category="network")
        return list(self.results.get(query, []))

    async def aclose(self) -> None:
        return None


def _controller(geocoder: CitySearchProvider, **kwargs: object) -> SearchInputController:
    return SearchInputController(
        geocoder,
        debounce_seconds=0.01,
        logger=logging.getLogger("test_search_controller"),
        **kwargs,  # type: ignore[arg-type]
    )


async def _settle() -> None:
    # Lets the debounce timer fire and the lookup task start.
    await asyncio.sleep(0.05)


def test_debounce_collapses_keystrokes_into_one_lookup() -> None:
    geocoder = _InstantGeocoder({"Lond": [LONDON_UK]})

    async def _run() -> None:
        controller = _controller(geocoder)
        for text in ("L", "Lo", "Lon", "Lond"):
            controller.on_input(text)
        assert controller.state == SearchState.TYPING
        await controller.wait_idle()
        assert geocoder.queries == ["Lond"]
        assert controller.visible_suggestions == (LONDON_UK,)
        assert controller.state == SearchState.SHOWING_SUGGESTIONS
        await controller.aclose()

    asyncio.run(_run())


def test_stale_lookup_cannot_overwrite_newer_results() -> None:
    geocoder = _GatedGeocoder({"Lon": [LONGYEARBYEN], "London": [LONDON_UK, LONDON_CA]})

    async def _run() -> None:
        controller = _controller(geocoder)
        controller.on_input("Lon")
        await _settle()
        assert geocoder.started == ["Lon"]
        assert controller.is_fetching

        controller.on_input("London")
        await _settle()
        assert geocoder.started == ["Lon", "London"]

        geocoder.gate("London").set()
        await _settle()
        assert controller.suggestions == (LONDON_UK, LONDON_CA)

        # The slower, older lookup completes last and must be discarded.
        geocoder.gate("Lon").set()
        await controller.wait_idle()
        assert controller.suggestions == (LONDON_UK, LONDON_CA)
        assert controller.query == "London"
        assert not controller.is_fetching
        await controller.aclose()

    asyncio.run(_run())


def test_short_query_clears_suggestions_without_lookup() -> None:
    geocoder = _InstantGeocoder({"Paris": [LONDON_UK]})

    async def _run() -> None:
        controller = _controller(geocoder)
        controller.on_input("Paris")
        await controller.wait_idle()
        assert controller.show_suggestions

        controller.on_input("P")
        await controller.wait_idle()
        assert geocoder.queries == ["Paris"]
        assert controller.suggestions == ()
        assert not controller.show_suggestions
        assert controller.state == SearchState.IDLE
        await controller.aclose()

    asyncio.run(_run())


def test_select_fills_input_and_submits_suggestion_name() -> None:
    geocoder = _InstantGeocoder({"Lon": [LONDON_UK, LONDON_CA]})
    submitted: list[str] = []

    async def _on_submit(city: str) -> None:
        submitted.append(city)

    async def _run() -> None:
        controller = _controller(geocoder, on_submit=_on_submit)
        controller.on_input("Lon")
        await controller.wait_idle()
        controller.select(LONDON_CA)

        assert controller.query == "London, Canada"
        assert controller.visible_suggestions == ()
        assert controller.state == SearchState.SELECTED
        assert await controller.submit() == "London"
        await controller.aclose()

    asyncio.run(_run())
    assert submitted == ["London"]


def test_free_text_submit_sends_trimmed_input() -> None:
    submitted: list[str] = []

    async def _on_submit(city: str) -> None:
        submitted.append(city)

    async def _run() -> None:
        controller = _controller(_InstantGeocoder({}), on_submit=_on_submit)
        controller.on_input("  Reykjavik  ")
        assert await controller.submit() == "Reykjavik"
        controller.on_input("   ")
        assert not controller.can_submit
        assert await controller.submit() is None
        await controller.aclose()

    asyncio.run(_run())
    assert submitted == ["Reykjavik"]


def test_typing_after_select_clears_selection() -> None:
    async def _run() -> None:
        controller = _controller(_InstantGeocoder({}))
        controller.select(LONDON_UK)
        controller.on_input("London, United Kingdom!")
        assert controller.selected_city is None
        assert controller.submission_text == "London, United Kingdom!"
        await controller.aclose()

    asyncio.run(_run())


def test_submit_is_ignored_while_busy() -> None:
    submitted: list[str] = []

    async def _run() -> None:
        release = asyncio.Event()

        async def _on_submit(city: str) -> None:
            submitted.append(city)
            await release.wait()

        controller = _controller(_InstantGeocoder({}), on_submit=_on_submit)
        controller.on_input("Oslo")
        first = asyncio.create_task(controller.submit())
        await asyncio.sleep(0)
        assert controller.busy
        assert not controller.can_submit
        assert await controller.submit() is None

        release.set()
        assert await first == "Oslo"
        assert not controller.busy
        await controller.aclose()

    asyncio.run(_run())
    assert submitted == ["Oslo"]


def test_dismiss_keeps_query_and_focus_reopens() -> None:
    geocoder = _InstantGeocoder({"Lon": [LONDON_UK]})

    async def _run() -> None:
        controller = _controller(geocoder)
        controller.on_input("Lon")
        await controller.wait_idle()

        controller.dismiss()
        assert controller.query == "Lon"
        assert controller.visible_suggestions == ()
        assert controller.suggestions == (LONDON_UK,)
        assert controller.state == SearchState.IDLE

        controller.focus()
        assert controller.visible_suggestions == (LONDON_UK,)
        assert controller.state == SearchState.SHOWING_SUGGESTIONS
        await controller.aclose()

    asyncio.run(_run())


def test_focus_without_suggestions_keeps_list_closed() -> None:
    controller = _controller(_InstantGeocoder({}))
    controller.focus()
    assert not controller.show_suggestions
    assert controller.state == SearchState.IDLE


def test_lookup_error_keeps_previous_suggestions() -> None:
    geocoder = _InstantGeocoder({"Lon": [LONDON_UK]})

    async def _run() -> None:
        controller = _controller(geocoder)
        controller.on_input("Lon")
        await controller.wait_idle()

        geocoder.fail = True
        controller.on_input("Lond")
        await controller.wait_idle()
        assert controller.suggestions == (LONDON_UK,)
        assert controller.last_error == "geocoding unavailable"
        assert not controller.is_fetching
        assert controller.state == SearchState.TYPING
        await controller.aclose()

    asyncio.run(_run())


def test_no_results_closes_list() -> None:
    async def _run() -> None:
        controller = _controller(_InstantGeocoder({}))
        controller.on_input("Zzyzx")
        await controller.wait_idle()
        assert controller.suggestions == ()
        assert not controller.show_suggestions
        await controller.aclose()

    asyncio.run(_run())


def test_select_discards_in_flight_lookup() -> None:
    geocoder = _GatedGeocoder({"Lon": [LONGYEARBYEN]})

    async def _run() -> None:
        controller = _controller(geocoder)
        controller.on_input("Lon")
        await _settle()
        controller.select(LONDON_UK)
        geocoder.gate("Lon").set()
        await controller.wait_idle()
        assert controller.suggestions == ()
        assert controller.query == "London, United Kingdom"
        assert controller.state == SearchState.SELECTED
        await controller.aclose()

    asyncio.run(_run())


class _BrokenGeocoder(CitySearchProvider):
    provider_name = "broken"

    async def search_cities(self, query: str) -> list[City]:
        raise KeyError("results")

    async def aclose(self) -> None:
        return None


def test_unexpected_lookup_error_does_not_leave_fetching_state() -> None:
    async def _run() -> None:
        controller = _controller(_BrokenGeocoder())
        controller.on_input("Lon")
        await controller.wait_idle()
        assert not controller.is_fetching
        assert controller.state == SearchState.TYPING
        assert controller.last_error == "'results'"
        assert controller.suggestions == ()
        await controller.aclose()

    asyncio.run(_run())
