"""
BarAggregator - Rolls intraday bars into daily and weekly volume-delta records.

Volume direction is inferred per intraday bar: the whole bar volume counts as
buying when close > open, as selling when close < open, and as neither when
they are equal. Days follow the exchange-local calendar; weeks are keyed by
their ISO Monday.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Sequence, Tuple, Union
from zoneinfo import ZoneInfo

import numpy as np
import pandas as pd

from src.utils.logging_setup import get_logger
from src.utils.timezone import resolve_timezone, week_monday

from ..models import DailyBar, RawBar, WeeklyBar

logger = get_logger(__name__)

BarLike = Union[RawBar, Mapping[str, Any]]

_COLUMNS = ["time", "open", "high", "low", "close", "volume"]


class BarAggregator:
    """
    Aggregates intraday bars into DailyBar and WeeklyBar records.

    Input may arrive out of order or with duplicate timestamps (overlapping
    chunked fetches); duplicates are resolved in favor of the latest record.

    Example:
        aggregator = BarAggregator("America/New_York")
        daily, weekly = aggregator.aggregate(bars)
    """

    def __init__(self, exchange_timezone: Union[str, ZoneInfo, None] = None) -> None:
        self._tz = resolve_timezone(exchange_timezone)

    @property
    def timezone(self) -> ZoneInfo:
        return self._tz

    def aggregate(self, bars: Iterable[BarLike]) -> Tuple[List[DailyBar], List[WeeklyBar]]:
        """Daily and weekly records for the given intraday bars."""
        daily = self.aggregate_daily(bars)
        return daily, build_weekly(daily)

    def aggregate_daily(self, bars: Iterable[BarLike]) -> List[DailyBar]:
        """
        Sum intraday bars per exchange-local trading date.

        Args:
            bars: RawBar objects or mappings with time/open/high/low/close/volume

        Returns:
            DailyBars sorted by date
        """
        return self.daily_from_frame(self.to_frame(bars))

    def daily_from_frame(self, frame: pd.DataFrame) -> List[DailyBar]:
        """DailyBars from a frame produced by ``to_frame`` (or a time slice of one)."""
        if frame.empty:
            return []

        frame = frame.copy()

        close = frame["close"].to_numpy(dtype=np.float64)
        open_ = frame["open"].to_numpy(dtype=np.float64)
        volume = frame["volume"].to_numpy(dtype=np.float64)
        frame["buy"] = np.where(close > open_, volume, 0.0)
        frame["sell"] = np.where(close < open_, volume, 0.0)
        frame["date"] = (
            pd.to_datetime(frame["time"], unit="s", utc=True).dt.tz_convert(self._tz).dt.date
        )

        grouped = frame.groupby("date", sort=True).agg(
            open=("open", "first"),
            close=("close", "last"),
            high=("high", "max"),
            low=("low", "min"),
            buy_vol=("buy", "sum"),
            sell_vol=("sell", "sum"),
            total_vol=("volume", "sum"),
        )
        grouped["high"] = grouped["high"].fillna(grouped["close"])
        grouped["low"] = grouped["low"].fillna(grouped["close"])

        daily = [
            _make_daily(day, row.open, row.close, row.high, row.low, row.buy_vol, row.sell_vol, row.total_vol)
            for day, row in grouped.iterrows()
        ]

        logger.debug(
            "Aggregated intraday bars",
            extra={
                "intraday_bars": len(frame),
                "days": len(daily),
                "first_day": daily[0].date.isoformat(),
                "last_day": daily[-1].date.isoformat(),
            },
        )
        return daily

    @staticmethod
    def to_frame(bars: Iterable[BarLike]) -> pd.DataFrame:
        """
        Deduplicated, time-sorted DataFrame of intraday bars.

        Later records win over earlier ones with the same timestamp.
        """
        rows = [_bar_to_row(bar) for bar in bars]
        if not rows:
            return pd.DataFrame(columns=_COLUMNS)

        frame = pd.DataFrame(rows, columns=_COLUMNS)
        before = len(frame)
        frame = frame.drop_duplicates(subset="time", keep="last")
        frame = frame.sort_values("time", kind="stable").reset_index(drop=True)

        if len(frame) < before:
            logger.debug(f"Dropped {before - len(frame)} duplicate intraday bars")
        return frame


def build_weekly(daily: Sequence[DailyBar]) -> List[WeeklyBar]:
    """
    Bucket DailyBars by the Monday of their ISO week.

    The weeks partition the input: every day lands in exactly one week and
    weekly totals sum to the daily totals.
    """
    buckets: dict = {}
    for day in daily:
        buckets.setdefault(week_monday(day.date), []).append(day)

    weeks: List[WeeklyBar] = []
    for monday in sorted(buckets):
        days = buckets[monday]
        buy_vol = sum(d.buy_vol for d in days)
        sell_vol = sum(d.sell_vol for d in days)
        total_vol = sum(d.total_vol for d in days)
        delta = buy_vol - sell_vol
        weeks.append(
            WeeklyBar(
                week_start=monday,
                open=days[0].open,
                close=days[-1].close,
                high=max(d.high for d in days),
                low=min(d.low for d in days),
                delta=delta,
                total_vol=total_vol,
                delta_pct=delta / total_vol * 100 if total_vol > 0 else 0.0,
                n_days=len(days),
                avg_vol=total_vol / len(days),
                avg_range=sum(d.range_pct for d in days) / len(days),
            )
        )
    return weeks


def _make_daily(day, open_, close, high, low, buy_vol, sell_vol, total_vol) -> DailyBar:
    delta = float(buy_vol - sell_vol)
    total_vol = float(total_vol)
    close = float(close)
    open_ = float(open_)
    return DailyBar(
        date=day,
        open=open_,
        close=close,
        high=float(high),
        low=float(low),
        buy_vol=float(buy_vol),
        sell_vol=float(sell_vol),
        total_vol=total_vol,
        delta=delta,
        delta_pct=delta / total_vol * 100 if total_vol > 0 else 0.0,
        range_pct=(float(high) - float(low)) / close * 100 if close != 0 else 0.0,
    )


def _bar_to_row(bar: BarLike) -> Tuple[int, float, float, float, float, float]:
    """Extract (time, open, high, low, close, volume) from a bar or mapping."""
    if isinstance(bar, Mapping):
        get = bar.get
    else:
        def get(key: str, default: Any = None) -> Any:
            return getattr(bar, key, default)

    volume = get("volume")
    return (
        int(get("time")),
        float(get("open")),
        _optional_float(get("high")),
        _optional_float(get("low")),
        float(get("close")),
        float(volume) if volume is not None else 0.0,
    )


def _optional_float(value: Any) -> float:
    return float(value) if value is not None else np.nan
