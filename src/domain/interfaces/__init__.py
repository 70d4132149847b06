"""Domain interfaces for dependency injection."""

from .intraday_bar_provider import IntradayBarProvider

__all__ = [
    "IntradayBarProvider",
]
