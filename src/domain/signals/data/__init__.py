"""Data pipeline components for the detection engine (intraday → daily → weekly)."""

from .bar_aggregator import BarAggregator, build_weekly

__all__ = [
    "BarAggregator",
    "build_weekly",
]
