"""
Yahoo Finance Intraday Data Adapter.

Fetches intraday OHLCV bars from Yahoo Finance in date chunks.
Implements IntradayBarProvider for the volume divergence pipeline.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

import pandas as pd
import yfinance as yf

from ....domain.signals.config.schema import INTERVAL_HISTORY_DAYS
from ....domain.signals.errors import UpstreamFetchError
from ....domain.signals.models import RawBar
from ....utils.logging_setup import get_logger
from ....utils.perf_logger import log_timing_async
from ....utils.timezone import now_utc

logger = get_logger(__name__)


class YahooIntradayAdapter:
    """
    Yahoo Finance intraday bar adapter.

    Yahoo caps both how far back intraday data goes and how many days a
    single request may span, so a request is split into chunks walked
    oldest first. Chunks may overlap at their edges; duplicates are left
    for the aggregator to resolve.

    Interval limits (calendar days):
    - 1m: 30 days of history, 7 days per request
    - 2m/5m/15m/30m: 60 days of history
    - 1h: 730 days of history

    Note: Yahoo has rate limits. This adapter implements
    rate limiting to avoid 429 errors. It never retries; failures surface
    as UpstreamFetchError.
    """

    INTERVAL_MAP = {
        "1m": "1m",
        "2m": "2m",
        "5m": "5m",
        "15m": "15m",
        "30m": "30m",
        "1h": "1h",
        # Long format aliases
        "1min": "1m",
        "5min": "5m",
        "15min": "15m",
        "30min": "30m",
    }

    MAX_HISTORY_DAYS = dict(INTERVAL_HISTORY_DAYS)

    MAX_CHUNK_DAYS = {
        "1m": 7,
        "2m": 60,
        "5m": 60,
        "15m": 60,
        "30m": 60,
        "1h": 365,
    }

    def __init__(self, rate_limit_per_sec: float = 1.0, prepost: bool = False) -> None:
        """
        Args:
            rate_limit_per_sec: Maximum requests per second.
            prepost: Include pre/post-market bars.
        """
        self._rate_limit = rate_limit_per_sec
        self._prepost = prepost
        self._last_request_time: Optional[datetime] = None

    @property
    def source_name(self) -> str:
        return "yahoo"

    def supports_interval(self, interval: str) -> bool:
        return interval in self.INTERVAL_MAP

    async def fetch_intraday_bars(self, symbol: str, interval: str, days: int) -> List[RawBar]:
        """
        Fetch intraday bars for the last ``days`` calendar days.

        Requests beyond Yahoo's history limit are truncated with a warning.

        Raises:
            ValueError: If the interval is not supported.
            UpstreamFetchError: If any chunk fails.
        """
        if interval not in self.INTERVAL_MAP:
            raise ValueError(f"Unsupported interval: {interval}")
        yf_interval = self.INTERVAL_MAP[interval]

        max_days = self.MAX_HISTORY_DAYS[yf_interval]
        if days > max_days:
            logger.warning(
                f"Requested {days} days of {interval} data, "
                f"but Yahoo only provides {max_days} days. Truncating."
            )
            days = max_days

        end = now_utc()
        chunks = plan_chunks(end - timedelta(days=days), end, self.MAX_CHUNK_DAYS[yf_interval])

        bars: List[RawBar] = []
        async with log_timing_async(
            "intraday_fetch",
            warn_threshold_ms=5000,
            error_threshold_ms=30000,
            extra={"symbol": symbol, "interval": interval, "chunks": len(chunks)},
        ) as ctx:
            for chunk_start, chunk_end in chunks:
                await self._rate_limit_wait()
                try:
                    frame = await asyncio.to_thread(
                        self._download, symbol, yf_interval, chunk_start, chunk_end
                    )
                except Exception as e:
                    logger.error(f"Error fetching {symbol} {interval} from Yahoo: {e}")
                    raise UpstreamFetchError(symbol, interval, e) from e
                bars.extend(frame_to_raw_bars(frame))
            ctx["bars"] = len(bars)

        logger.info(f"Fetched {len(bars)} {interval} bars for {symbol} over {days} days")
        return bars

    async def _rate_limit_wait(self) -> None:
        """Wait for rate limit if needed."""
        if self._last_request_time:
            elapsed = (now_utc() - self._last_request_time).total_seconds()
            min_interval = 1.0 / self._rate_limit
            if elapsed < min_interval:
                await asyncio.sleep(min_interval - elapsed)
        self._last_request_time = now_utc()

    def _download(self, symbol: str, yf_interval: str, start: datetime, end: datetime) -> pd.DataFrame:
        """Synchronous Yahoo request for one chunk."""
        return yf.Ticker(symbol).history(
            start=start,
            end=end,
            interval=yf_interval,
            auto_adjust=True,
            prepost=self._prepost,
            raise_errors=True,
        )


def plan_chunks(start: datetime, end: datetime, chunk_days: int) -> List[Tuple[datetime, datetime]]:
    """Split [start, end] into consecutive spans of at most ``chunk_days``, oldest first."""
    chunks = []
    step = timedelta(days=chunk_days)
    cursor = start
    while cursor < end:
        chunk_end = min(cursor + step, end)
        chunks.append((cursor, chunk_end))
        cursor = chunk_end
    return chunks


def frame_to_raw_bars(df: pd.DataFrame) -> List[RawBar]:
    """Convert a yfinance history frame to RawBars, skipping rows without prices."""
    if df is None or df.empty:
        return []

    df = df.dropna(subset=["Open", "Close"])
    bars = []
    for idx, row in df.iterrows():
        ts = pd.Timestamp(idx)
        if ts.tzinfo is None:
            ts = ts.tz_localize("UTC")
        bars.append(
            RawBar(
                time=int(ts.timestamp()),
                open=float(row["Open"]),
                high=float(row["High"]) if not pd.isna(row["High"]) else float(row["Close"]),
                low=float(row["Low"]) if not pd.isna(row["Low"]) else float(row["Close"]),
                close=float(row["Close"]),
                volume=float(row["Volume"]) if not pd.isna(row["Volume"]) else 0.0,
            )
        )
    return bars
