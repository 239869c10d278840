"""City search with current weather conditions."""

__version__ = "0.1.0"
