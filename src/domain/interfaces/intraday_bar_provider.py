"""Intraday bar provider protocol: the market-data collaborator of the detection engine."""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable

from ..signals.models import RawBar


@runtime_checkable
class IntradayBarProvider(Protocol):
    """
    Protocol for intraday OHLCV sources.

    Implementations:
    - YahooIntradayAdapter

    Usage:
        provider: IntradayBarProvider = YahooIntradayAdapter()
        bars = await provider.fetch_intraday_bars("AAPL", "1h", days=150)
    """

    async def fetch_intraday_bars(self, symbol: str, interval: str, days: int) -> List[RawBar]:
        """
        Fetch intraday bars covering the last ``days`` calendar days.

        Results may contain duplicate or out-of-order records (chunked
        fetches); consumers deduplicate by time.

        Args:
            symbol: Ticker symbol (e.g., "AAPL").
            interval: Bar size ("1m", "5m", ...).
            days: Calendar days of history to cover, ending now.

        Returns:
            List of RawBar.

        Raises:
            UpstreamFetchError: If the source fails. Callers do not retry.
        """
        ...
