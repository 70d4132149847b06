"""Synthetic bar builders shared by the test suite."""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence

from src.domain.signals.models import DailyBar, RawBar


def trading_days(start: date, count: int) -> List[date]:
    """``count`` consecutive weekdays starting at ``start`` (no holiday calendar)."""
    days = []
    day = start
    while len(days) < count:
        if day.weekday() < 5:
            days.append(day)
        day += timedelta(days=1)
    return days


def make_daily_bar(
    day: date,
    close: float,
    delta: float = 0.0,
    total_vol: float = 1_000_000.0,
    range_pct: float = 1.0,
) -> DailyBar:
    """
    Down candle whose high-low span is ``range_pct`` of the close: the body
    covers half the span, with a quarter-span wick on each side.
    """
    span = close * range_pct / 100
    open_ = close + span / 2
    high = open_ + span / 4
    low = close - span / 4
    return DailyBar(
        date=day,
        open=open_,
        close=close,
        high=high,
        low=low,
        buy_vol=(total_vol + delta) / 2,
        sell_vol=(total_vol - delta) / 2,
        total_vol=total_vol,
        delta=delta,
        delta_pct=delta / total_vol * 100 if total_vol > 0 else 0.0,
        range_pct=(high - low) / close * 100 if close != 0 else 0.0,
    )


def make_daily_series(
    closes: Sequence[float],
    deltas: Optional[Sequence[float]] = None,
    volumes: Optional[Sequence[float]] = None,
    ranges: Optional[Sequence[float]] = None,
    start: date = date(2024, 1, 1),
) -> List[DailyBar]:
    """Daily bars on consecutive weekdays; 2024-01-01 is a Monday."""
    n = len(closes)
    deltas = deltas if deltas is not None else [0.0] * n
    volumes = volumes if volumes is not None else [1_000_000.0] * n
    ranges = ranges if ranges is not None else [1.0] * n
    return [
        make_daily_bar(day, closes[i], deltas[i], volumes[i], ranges[i])
        for i, day in enumerate(trading_days(start, n))
    ]


def linspace(first: float, last: float, n: int) -> List[float]:
    if n == 1:
        return [first]
    step = (last - first) / (n - 1)
    return [first + step * i for i in range(n)]


def make_accumulation_intraday(
    n_days: int = 60,
    start: date = date(2024, 1, 2),
    start_price: float = 100.0,
    daily_drop: float = 0.4,
) -> List[RawBar]:
    """
    Thirteen 30-minute bars per weekday: seven up bars then six larger down
    bars, so each day closes lower on net buying (+10k of 130k volume).
    """
    bars: List[RawBar] = []
    price = start_price
    for day in trading_days(start, n_days):
        session_open = datetime(day.year, day.month, day.day, 14, 30, tzinfo=timezone.utc)
        down_step = (0.7 + daily_drop) / 6
        for i in range(13):
            step = 0.1 if i < 7 else -down_step
            t = int((session_open + timedelta(minutes=30 * i)).timestamp())
            close = price + step
            bars.append(
                RawBar(
                    time=t,
                    open=price,
                    high=max(price, close),
                    low=min(price, close),
                    close=close,
                    volume=10_000.0,
                )
            )
            price = close
    return bars
