"""
Volume Divergence Flag Domain Models.

Defines the value objects of the accumulation-divergence engine:
- RawBar: Intraday OHLCV bar from the market-data collaborator
- DailyBar / WeeklyBar: Volume-delta aggregates
- ScoreResult / CandidateWindow: Scorer output, with window coordinates
- DistributionCluster: Selling-into-rally span
- CacheEntry: Per (symbol, trading date) detection outcome
- ReasonCode: Why a window was or was not flagged
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional


class ReasonCode(str, Enum):
    """Outcome code attached to every score and detection result."""

    # DataInsufficient
    INSUFFICIENT_RAW_DATA = "insufficient_raw_data"
    INSUFFICIENT_SCAN_DATA = "insufficient_scan_data"
    INSUFFICIENT_DAILY_DATA = "insufficient_daily_data"
    INSUFFICIENT_DATA = "insufficient_data"
    INSUFFICIENT_WEEKS = "insufficient_weeks"

    # GatedOut
    PRICE_RISING = "price_rising"
    CRASH = "crash"
    CONCORDANT_SELLING = "concordant_selling"
    SLOPE_GATE = "slope_gate"

    # Scored
    BELOW_THRESHOLD = "below_threshold"
    ACCUMULATION_DIVERGENCE = "accumulation_divergence"

    @property
    def is_data_insufficient(self) -> bool:
        return self.value.startswith("insufficient")

    @property
    def is_gated(self) -> bool:
        return self in _GATED_REASONS


_GATED_REASONS = {
    ReasonCode.PRICE_RISING,
    ReasonCode.CRASH,
    ReasonCode.CONCORDANT_SELLING,
    ReasonCode.SLOPE_GATE,
}


@dataclass(frozen=True)
class RawBar:
    """Intraday bar as supplied by the market-data collaborator."""

    time: int  # epoch seconds
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class DailyBar:
    """
    One exchange-local trading day of volume-delta aggregates.

    Invariants: delta == buy_vol - sell_vol and |delta| <= total_vol.
    """

    date: date
    open: float
    close: float
    high: float
    low: float
    buy_vol: float
    sell_vol: float
    total_vol: float
    delta: float
    delta_pct: float
    range_pct: float  # (high - low) / close * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "open": self.open,
            "close": self.close,
            "high": self.high,
            "low": self.low,
            "buy_vol": self.buy_vol,
            "sell_vol": self.sell_vol,
            "total_vol": self.total_vol,
            "delta": self.delta,
            "delta_pct": self.delta_pct,
            "range_pct": self.range_pct,
        }


@dataclass(frozen=True)
class WeeklyBar:
    """DailyBars of one ISO week, keyed by its Monday."""

    week_start: date
    open: float
    close: float
    high: float
    low: float
    delta: float
    total_vol: float
    delta_pct: float
    n_days: int
    avg_vol: float
    avg_range: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_start": self.week_start.isoformat(),
            "open": self.open,
            "close": self.close,
            "high": self.high,
            "low": self.low,
            "delta": self.delta,
            "total_vol": self.total_vol,
            "delta_pct": self.delta_pct,
            "n_days": self.n_days,
            "avg_vol": self.avg_vol,
            "avg_range": self.avg_range,
        }


@dataclass(frozen=True)
class ScoreResult:
    """
    Composite score of one candidate window.

    ``metrics`` holds the raw metric inputs (net_delta_pct, delta_slope_norm, ...)
    and the clamped components s1..s8. Gated results carry only the inputs
    computed before the gate fired.
    """

    score: float
    detected: bool
    reason: ReasonCode
    weeks: int = 0
    accum_weeks: int = 0
    metrics: Dict[str, Any] = field(default_factory=dict)
    duration_multiplier: float = 0.0

    @classmethod
    def rejected(cls, reason: ReasonCode, weeks: int = 0, **metrics: Any) -> "ScoreResult":
        """Zero, non-detected result for insufficient or gated windows."""
        return cls(score=0.0, detected=False, reason=reason, weeks=weeks, metrics=dict(metrics))

    @property
    def components(self) -> Dict[str, float]:
        return {k: v for k, v in self.metrics.items() if k in _COMPONENT_KEYS}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "detected": self.detected,
            "reason": self.reason.value,
            "weeks": self.weeks,
            "accum_weeks": self.accum_weeks,
            "metrics": dict(self.metrics),
            "duration_multiplier": self.duration_multiplier,
        }


_COMPONENT_KEYS = {"s1", "s2", "s3", "s4", "s5", "s6", "s7", "s8"}


@dataclass(frozen=True)
class CandidateWindow:
    """
    ScoreResult of one (window size, offset) slice of the daily history.

    ``start``/``end`` are inclusive indices into the scanned history. A
    CandidateWindow accepted by the zone selector gets a 1-based ``rank``
    and is then called a zone.
    """

    start: int
    end: int
    win_size: int
    start_date: date
    end_date: date
    result: ScoreResult
    rank: Optional[int] = None

    @property
    def score(self) -> float:
        return self.result.score

    @property
    def detected(self) -> bool:
        return self.result.detected

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def with_rank(self, rank: int) -> "CandidateWindow":
        return replace(self, rank=rank)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "start": self.start,
            "end": self.end,
            "window_days": self.win_size,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            **self.result.to_dict(),
        }


# Zones are candidate windows that survived deduplication
Zone = CandidateWindow


@dataclass
class DistributionCluster:
    """Merged run of windows where price rose while net delta was negative."""

    start: int
    end: int
    start_date: date
    end_date: date
    count: int
    max_price_change: float
    min_delta_pct: float
    span_days: int = 0
    price_change_pct: float = 0.0
    net_delta: float = 0.0
    net_delta_pct: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "span_days": self.span_days,
            "count": self.count,
            "price_change_pct": self.price_change_pct,
            "net_delta_pct": self.net_delta_pct,
            "max_price_change": self.max_price_change,
            "min_delta_pct": self.min_delta_pct,
        }


@dataclass(frozen=True)
class CacheEntry:
    """Detection outcome for one (symbol, trading date)."""

    is_detected: bool
    composite_score: float
    zones: List[Zone] = field(default_factory=list)
    all_zones: List[Zone] = field(default_factory=list)
    distribution: List[DistributionCluster] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)
    status: str = ""
    reason: ReasonCode = ReasonCode.BELOW_THRESHOLD
    best_zone_weeks: int = 0

    @classmethod
    def empty(cls, reason: ReasonCode, status: str, **details: Any) -> "CacheEntry":
        return cls(is_detected=False, composite_score=0.0, reason=reason, status=status, details=dict(details))

    def to_dict(self) -> Dict[str, Any]:
        details = dict(self.details)
        for key in ("daily", "weekly"):
            if key in details:
                details[key] = [bar.to_dict() for bar in details[key]]
        return {
            "is_detected": self.is_detected,
            "composite_score": self.composite_score,
            "status": self.status,
            "reason": self.reason.value,
            "best_zone_weeks": self.best_zone_weeks,
            "zones": [z.to_dict() for z in self.zones],
            "all_zones": [z.to_dict() for z in self.all_zones],
            "distribution": [c.to_dict() for c in self.distribution],
            "details": details,
        }
