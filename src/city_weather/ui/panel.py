"""Rich rendering of a normalized weather record."""

from __future__ import annotations

import math
from datetime import datetime

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models import WeatherRecord


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_localtime(value: datetime) -> str:
    """Format as e.g. ``Monday, Jan 6, 02:30 PM`` in the viewer's local zone."""
    local = value.astimezone() if value.tzinfo else value
    return f"{local:%A}, {local:%b} {local.day}, {local:%I:%M %p}"


def _display_icon(icon: str) -> str:
    # Keyed-provider icons are image URLs, which a terminal cannot show.
    if icon.startswith(("//", "http://", "https://")):
        return ""
    return icon


class WeatherPanel:
    """Builds the weather details panel; performs no I/O besides printing."""

    def build(self, record: WeatherRecord) -> Panel:
        location = record.location
        current = record.current

        header = Text(justify="center")
        header.append(location.name, style="bold white")
        header.append("\n")
        place = ", ".join(part for part in (location.region, location.country) if part)
        header.append(place, style="dim")
        header.append("\n")
        header.append(format_localtime(location.localtime), style="dim")

        main = Text(justify="center")
        icon = _display_icon(current.condition.icon)
        if icon:
            main.append(f"{icon} ")
        main.append(f"{round_half_up(current.temp_c)}°C", style="bold cyan")
        main.append(f" / {round_half_up(current.temp_f)}°F", style="cyan")
        main.append("\n")
        main.append(current.condition.text, style="bold")

        feels = Text(justify="center")
        feels.append("Feels like ")
        feels.append(f"{round_half_up(current.feelslike_c)}°C", style="bold")
        feels.append(f" / {round_half_up(current.feelslike_f)}°F")

        details = Table.grid(padding=(0, 2), expand=True)
        details.add_column(style="bold")
        details.add_column(justify="right")
        details.add_column(style="bold")
        details.add_column(justify="right")
        details.add_row(
            "Humidity",
            f"{current.humidity}%",
            "Wind",
            f"{round_half_up(current.wind_kph)} km/h {current.wind_dir}",
        )
        details.add_row(
            "Visibility",
            f"{current.vis_km:g} km",
            "UV Index",
            f"{current.uv:g}",
        )

        return Panel(
            Group(header, Text(""), main, feels, Text(""), details),
            title="Current Weather",
            border_style="blue",
        )

    def render(self, console: Console, record: WeatherRecord) -> None:
        console.print(self.build(record))
