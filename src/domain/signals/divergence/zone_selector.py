"""
Zone selection: greedy deduplication of detected candidate windows.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from src.utils.logging_setup import get_logger

from ..config.schema import ZoneConfig
from ..models import CandidateWindow, Zone

logger = get_logger(__name__)


def overlap_days(a: CandidateWindow, b: CandidateWindow) -> int:
    """Number of trading days shared by two windows (inclusive indices)."""
    return max(0, min(a.end, b.end) - max(a.start, b.start) + 1)


def gap_days(a: CandidateWindow, b: CandidateWindow) -> int:
    """Index distance between two windows; 0 when they touch or overlap."""
    if a.start > b.end:
        return a.start - b.end
    if b.start > a.end:
        return b.start - a.end
    return 0


class ZoneSelector:
    """
    Picks the best non-overlapping detected windows.

    Candidates are taken in descending score order (ties keep scan order).
    A candidate is rejected if it shares at least ``max_overlap_ratio`` of
    its own length with an accepted zone, or if it sits closer than
    ``min_gap_days`` to one. Selection stops at ``max_zones``.
    """

    def __init__(self, config: Optional[ZoneConfig] = None) -> None:
        self._config = config or ZoneConfig()

    def select(self, candidates: Iterable[CandidateWindow]) -> List[Zone]:
        """
        Args:
            candidates: Scanner output; non-detected entries are ignored

        Returns:
            Zones ranked 1..k, best first, each with its full ScoreResult
        """
        detected = sorted((c for c in candidates if c.detected), key=lambda c: c.score, reverse=True)

        zones: List[Zone] = []
        for candidate in detected:
            if len(zones) >= self._config.max_zones:
                break
            if any(self._conflicts(candidate, zone) for zone in zones):
                continue
            zones.append(candidate.with_rank(len(zones) + 1))

        if zones:
            logger.debug(
                "Selected zones",
                extra={
                    "detected_candidates": len(detected),
                    "zones": len(zones),
                    "best_score": round(zones[0].score, 4),
                },
            )
        return zones

    def _conflicts(self, candidate: CandidateWindow, zone: Zone) -> bool:
        ratio = overlap_days(candidate, zone) / candidate.length
        return ratio >= self._config.max_overlap_ratio or gap_days(candidate, zone) < self._config.min_gap_days
