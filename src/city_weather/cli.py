"""CLI: search for a city and show its current weather."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import ConfigurationError, QueryValidationError, WeatherAppError
from .log_setup import setup_logger
from .models import City, WeatherRecord
from .ui.app import WeatherApp
from .ui.panel import WeatherPanel
from .ui.search import SearchInputController
from .weather import WeatherProvider, build_weather_provider


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse weather CLI arguments."""
    parser = argparse.ArgumentParser(description="Look up current weather for a city.")
    parser.add_argument("--city", type=str, default=None, help="City name to look up.")
    parser.add_argument(
        "--suggest",
        type=str,
        default=None,
        help="List city suggestions for a partial name.",
    )
    parser.add_argument("--lat", type=float, default=None, help="Latitude for a direct lookup.")
    parser.add_argument("--lon", type=float, default=None, help="Longitude for a direct lookup.")
    parser.add_argument("--name", type=str, default="", help="Display name for --lat/--lon.")
    parser.add_argument("--region", type=str, default="", help="Display region for --lat/--lon.")
    parser.add_argument(
        "--country", type=str, default="", help="Display country for --lat/--lon."
    )
    parser.add_argument(
        "--interactive",
        action="store_true",
        help="Prompt for cities with autocomplete suggestions.",
    )
    parser.add_argument(
        "--via-proxy",
        action="store_true",
        help="Route requests through WEATHER_PROXY_URL regardless of WEATHER_PROVIDER_MODE.",
    )
    parser.add_argument("--json", action="store_true", help="Print the weather record as JSON.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def _validate_cli_input(args: argparse.Namespace) -> str:
    """Return the selected mode: ``suggest``, ``coords``, ``city`` or ``interactive``."""
    has_coords = args.lat is not None or args.lon is not None
    modes = [
        name
        for name, chosen in (
            ("suggest", args.suggest is not None),
            ("coords", has_coords),
            ("city", args.city is not None),
            ("interactive", args.interactive),
        )
        if chosen
    ]
    if len(modes) > 1:
        raise QueryValidationError(
            "Use only one of --city, --suggest, --lat/--lon or --interactive."
        )
    if not modes:
        return "interactive"

    mode = modes[0]
    if mode == "coords":
        if args.lat is None or args.lon is None:
            raise QueryValidationError("Provide both --lat and --lon.")
        if not (-90 <= args.lat <= 90):
            raise QueryValidationError(f"Invalid latitude {args.lat}; expected between -90 and 90.")
        if not (-180 <= args.lon <= 180):
            raise QueryValidationError(
                f"Invalid longitude {args.lon}; expected between -180 and 180."
            )
    if mode == "city" and not args.city.strip():
        raise QueryValidationError("--city must not be empty.")
    return mode


def _print_suggestions(console: Console, cities: Sequence[City]) -> None:
    if not cities:
        console.print("No matching cities found.")
        return
    table = Table(title="City Suggestions")
    table.add_column("#", justify="right")
    table.add_column("City", overflow="fold")
    table.add_column("Lat", justify="right")
    table.add_column("Lon", justify="right")
    for index, city in enumerate(cities, start=1):
        table.add_row(
            str(index),
            city.display_name,
            f"{city.latitude:.4f}",
            f"{city.longitude:.4f}",
        )
    console.print(table)


def _print_record(console: Console, record: WeatherRecord, as_json: bool) -> None:
    if as_json:
        console.print_json(record.model_dump_json())
    else:
        WeatherPanel().render(console, record)


async def _interactive(
    console: Console,
    provider: WeatherProvider,
    settings: Settings,
    logger: logging.Logger,
) -> int:
    app = WeatherApp(provider, logger=logger)
    controller = SearchInputController(
        provider.geocoder,
        on_submit=app.fetch_weather,
        debounce_seconds=settings.debounce_seconds,
        min_query_length=settings.search_min_query_length,
        logger=logger,
    )
    app.render(console)
    try:
        while True:
            try:
                text = await asyncio.to_thread(console.input, "[bold]City[/bold] (blank to quit): ")
            except EOFError:
                break
            if not text.strip():
                break

            controller.on_input(text)
            await controller.wait_idle()
            suggestions = controller.visible_suggestions
            if suggestions:
                _print_suggestions(console, suggestions)
                choice = await asyncio.to_thread(
                    console.input, "Pick a number, or press Enter to use the text as typed: "
                )
                choice = choice.strip()
                if choice.isdigit() and 1 <= int(choice) <= len(suggestions):
                    controller.select(suggestions[int(choice) - 1])
                else:
                    controller.dismiss()

            await controller.submit()
            app.render(console)
    finally:
        await controller.aclose()
    return 0


async def _run(
    args: argparse.Namespace,
    mode: str,
    settings: Settings,
    logger: logging.Logger,
    console: Console,
) -> int:
    async with build_weather_provider(settings, logger) as provider:
        if mode == "suggest":
            cities = await provider.geocoder.search_cities(args.suggest)
            _print_suggestions(console, cities)
            return 0
        if mode == "coords":
            record = await provider.fetch_weather_by_coords(
                args.lat,
                args.lon,
                args.name or f"{args.lat:.4f}, {args.lon:.4f}",
                args.region,
                args.country,
            )
            _print_record(console, record, args.json)
            return 0
        if mode == "city":
            if args.json:
                record = await provider.fetch_weather_by_city(args.city.strip())
                _print_record(console, record, as_json=True)
                return 0
            app = WeatherApp(provider, logger=logger)
            await app.fetch_weather(args.city.strip())
            app.render(console)
            return 4 if app.notification is not None else 0
        return await _interactive(console, provider, settings, logger)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the weather lookup flow."""
    args = parse_args(argv)
    logger = setup_logger(level=logging.DEBUG if args.verbose else logging.INFO)
    console = Console()

    overrides = {"WEATHER_PROVIDER_MODE": "proxy"} if args.via_proxy else {}
    try:
        settings = load_settings(**overrides)
    except ConfigurationError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2

    try:
        mode = _validate_cli_input(args)
    except QueryValidationError as exc:
        logger.error("Invalid input: %s", exc)
        return 2

    logger.info("Starting weather lookup: mode=%s settings=%s", mode, settings.safe_summary())
    try:
        return asyncio.run(_run(args, mode, settings, logger, console))
    except ConfigurationError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2
    except WeatherAppError as exc:
        logger.error("Weather lookup failure: %s", exc)
        return 4
    except Exception as exc:  # pragma: no cover - defensive catch for CLI runtime
        logger.exception("Unexpected weather CLI failure: %s", exc)
        return 99


if __name__ == "__main__":
    sys.exit(main())
