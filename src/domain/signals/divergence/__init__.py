"""
Volume Divergence Detection Package.

Provides tools for detecting:
- Accumulation divergence (price flat/down, volume delta building)
- Candidate windows across multiple window lengths
- Best non-overlapping accumulation zones
- Distribution clusters (price up, volume delta negative)
"""

from .accumulation_scorer import SCORER_VERSION, DivergenceScorer, composite_score, duration_multiplier
from .distribution import DistributionDetector
from .window_scanner import WindowScanner
from .zone_selector import ZoneSelector, gap_days, overlap_days

__all__ = [
    "SCORER_VERSION",
    "DivergenceScorer",
    "DistributionDetector",
    "WindowScanner",
    "ZoneSelector",
    "composite_score",
    "duration_multiplier",
    "gap_days",
    "overlap_days",
]
