"""Terminal presentation: search controller, weather panel and page state."""

from .app import WeatherApp
from .models import Notification, SearchState
from .panel import WeatherPanel
from .search import SearchInputController

__all__ = [
    "Notification",
    "SearchInputController",
    "SearchState",
    "WeatherApp",
    "WeatherPanel",
]
