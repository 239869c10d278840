"""CLI: run one request through the weather proxy handler locally."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from .config import load_proxy_settings
from .exceptions import ConfigurationError
from .log_setup import setup_logger
from .proxy import ProxyRequest, ProxyResponse, WeatherProxy


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse proxy CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Send one request through the weather proxy and print the response."
    )
    parser.add_argument("--q", type=str, default=None, help="City query (the 'q' parameter).")
    parser.add_argument(
        "--action",
        choices=["search", "current"],
        default="current",
        help="'search' for autocomplete, 'current' for current conditions.",
    )
    parser.add_argument("--origin", type=str, default=None, help="Origin header to send.")
    parser.add_argument("--method", type=str, default="GET", help="HTTP method to simulate.")
    parser.add_argument(
        "--require-key",
        action="store_true",
        help="Fail at startup when WEATHER_API_KEY is missing.",
    )
    return parser.parse_args(argv)


def build_request(args: argparse.Namespace) -> ProxyRequest:
    params: dict[str, str] = {}
    if args.q is not None:
        params["q"] = args.q
    if args.action == "search":
        params["action"] = "search"
    headers = {"Origin": args.origin} if args.origin else {}
    return ProxyRequest(method=args.method, params=params, headers=headers)


def _print_response(console: Console, response: ProxyResponse) -> None:
    style = "green" if response.status_code < 400 else "red"
    console.print(f"[{style}]HTTP {response.status_code}[/{style}]")
    table = Table(title="Response Headers", show_header=False)
    table.add_column("Header", style="bold")
    table.add_column("Value", overflow="fold")
    for name, value in response.headers.items():
        table.add_row(name, value)
    console.print(table)
    if response.body is not None:
        console.print_json(response.json())


def main(argv: Sequence[str] | None = None) -> int:
    """Run a single proxied request."""
    args = parse_args(argv)
    logger = setup_logger("city_weather.proxy")
    console = Console()

    try:
        settings = load_proxy_settings()
    except ConfigurationError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2
    logger.info("Proxy settings: %s", settings.safe_summary())

    async def _run() -> ProxyResponse:
        proxy = WeatherProxy.from_settings(settings, logger, require_api_key=args.require_key)
        async with proxy:
            return await proxy.handle(build_request(args))

    try:
        response = asyncio.run(_run())
    except ConfigurationError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2

    _print_response(console, response)
    return 0 if response.status_code < 400 else 4


if __name__ == "__main__":
    sys.exit(main())
