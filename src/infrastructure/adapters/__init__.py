"""Infrastructure adapters for external systems."""

from .yahoo import YahooIntradayAdapter

__all__ = ["YahooIntradayAdapter"]
