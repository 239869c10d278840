"""Page-level coordinator: search submission to rendered weather."""

from __future__ import annotations

import logging

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from ..exceptions import WeatherAppError
from ..models import WeatherRecord
from ..weather.base import WeatherProvider
from .models import Notification
from .panel import WeatherPanel

FETCH_ERROR_MESSAGE = (
    "Could not fetch weather data. Please check the city name and try again."
)
EMPTY_PROMPT = "Search for a city to see the current weather conditions"


class WeatherApp:
    """Owns the displayed weather record and the inline error notification.

    A failed lookup always clears the previous record, so stale weather is
    never shown next to an error.
    """

    def __init__(
        self,
        provider: WeatherProvider,
        *,
        logger: logging.Logger | None = None,
        panel: WeatherPanel | None = None,
    ) -> None:
        self.provider = provider
        self.logger = logger or logging.getLogger("city_weather.app")
        self.panel = panel or WeatherPanel()
        self.record: WeatherRecord | None = None
        self.notification: Notification | None = None
        self.is_loading = False

    async def fetch_weather(self, city: str) -> WeatherRecord | None:
        """Fetch weather for a submitted city name; used as the search submit callback."""
        self.is_loading = True
        self.notification = None
        try:
            record = await self.provider.fetch_weather_by_city(city)
        except WeatherAppError as exc:
            self.logger.error("Weather lookup for %r failed: %s", city, exc)
            self.record = None
            self.notification = Notification(
                title="Error",
                message=FETCH_ERROR_MESSAGE,
                detail=str(exc),
            )
            return None
        finally:
            self.is_loading = False

        self.record = record
        return record

    def build_view(self) -> RenderableType:
        parts: list[RenderableType] = []
        if self.notification is not None:
            parts.append(
                Panel(
                    self.notification.message,
                    title=self.notification.title,
                    border_style="red",
                )
            )
        if self.record is not None:
            parts.append(self.panel.build(self.record))
        elif not self.is_loading:
            parts.append(Text(EMPTY_PROMPT, style="dim", justify="center"))
        return Group(*parts)

    def render(self, console: Console) -> None:
        console.print(self.build_view())
