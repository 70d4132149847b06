"""
Timezone utilities.

Conventions:
- Raw bar timestamps: epoch seconds (UTC)
- Trading dates: exchange-local calendar dates (America/New_York for US)
- Internal datetimes: timezone-aware UTC
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

UTC = timezone.utc
US_EASTERN = ZoneInfo("America/New_York")

# Market timezone mapping for exchange-local trading dates
MARKET_TIMEZONE = {
    "US": ZoneInfo("America/New_York"),
    "HK": ZoneInfo("Asia/Hong_Kong"),
    "CN": ZoneInfo("Asia/Shanghai"),
    "JP": ZoneInfo("Asia/Tokyo"),
}


def resolve_timezone(tz: Union[str, ZoneInfo, None]) -> ZoneInfo:
    """Accept a ZoneInfo, an IANA name, a market code ("US") or None (US Eastern)."""
    if tz is None:
        return US_EASTERN
    if isinstance(tz, ZoneInfo):
        return tz
    if tz in MARKET_TIMEZONE:
        return MARKET_TIMEZONE[tz]
    return ZoneInfo(tz)


def now_utc() -> datetime:
    """Get current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def trading_date(now: Optional[datetime] = None, tz: Union[str, ZoneInfo, None] = None) -> date:
    """
    Exchange-local calendar date of ``now``.

    Naive datetimes are assumed to be UTC.
    """
    if now is None:
        now = now_utc()
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    return now.astimezone(resolve_timezone(tz)).date()


def epoch_to_local_date(epoch_seconds: float, tz: Union[str, ZoneInfo, None] = None) -> date:
    """Exchange-local calendar date of an epoch-seconds timestamp."""
    return datetime.fromtimestamp(epoch_seconds, tz=UTC).astimezone(resolve_timezone(tz)).date()


def week_monday(day: date) -> date:
    """Monday of ``day``'s ISO week (Sunday maps back 6 days)."""
    return day - timedelta(days=day.weekday())
