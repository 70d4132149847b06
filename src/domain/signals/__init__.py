"""
Volume Divergence Flag engine - stealth accumulation detection from intraday volume delta.

This module provides:
- BarAggregator: Intraday bars -> daily -> weekly volume-delta records
- DivergenceScorer: Composite accumulation-divergence score per window
- WindowScanner: Scores every window length at every offset
- ZoneSelector: Best non-overlapping detected windows
- DistributionDetector: Price-up / delta-down clusters
- Value objects (DailyBar, ScoreResult, CandidateWindow, CacheEntry, ...)

Usage:
    from src.domain.signals import BarAggregator, DivergenceScorer, WindowScanner, ZoneSelector

    daily, _ = BarAggregator("America/New_York").aggregate(raw_bars)
    candidates = WindowScanner(DivergenceScorer()).scan(daily, baseline_daily=pre_daily)
    zones = ZoneSelector().select(candidates)
"""

from .models import (
    CacheEntry,
    CandidateWindow,
    DailyBar,
    DistributionCluster,
    RawBar,
    ReasonCode,
    ScoreResult,
    WeeklyBar,
    Zone,
)
from .errors import UpstreamFetchError, VDFError

from .data import BarAggregator, build_weekly
from .divergence import (
    SCORER_VERSION,
    DistributionDetector,
    DivergenceScorer,
    WindowScanner,
    ZoneSelector,
)

__all__ = [
    # Models
    "CacheEntry",
    "CandidateWindow",
    "DailyBar",
    "DistributionCluster",
    "RawBar",
    "ReasonCode",
    "ScoreResult",
    "WeeklyBar",
    "Zone",
    # Errors
    "UpstreamFetchError",
    "VDFError",
    # Data pipeline
    "BarAggregator",
    "build_weekly",
    # Detection
    "SCORER_VERSION",
    "DistributionDetector",
    "DivergenceScorer",
    "WindowScanner",
    "ZoneSelector",
]
