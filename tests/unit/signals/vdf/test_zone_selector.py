"""
Unit tests for ZoneSelector.
"""

from datetime import date, timedelta
from itertools import combinations

import numpy as np

from src.domain.signals.config.schema import ZoneConfig
from src.domain.signals.divergence import ZoneSelector, gap_days, overlap_days
from src.domain.signals.models import CandidateWindow, ReasonCode, ScoreResult

_BASE = date(2024, 1, 1)


def _candidate(start: int, end: int, score: float, detected: bool = True) -> CandidateWindow:
    result = ScoreResult(
        score=score,
        detected=detected,
        reason=ReasonCode.ACCUMULATION_DIVERGENCE if detected else ReasonCode.BELOW_THRESHOLD,
        weeks=3,
    )
    return CandidateWindow(
        start=start,
        end=end,
        win_size=end - start + 1,
        start_date=_BASE + timedelta(days=start),
        end_date=_BASE + timedelta(days=end),
        result=result,
    )


class TestIntervalHelpers:
    def test_overlap_days(self) -> None:
        assert overlap_days(_candidate(0, 9, 0.5), _candidate(5, 14, 0.5)) == 5
        assert overlap_days(_candidate(0, 9, 0.5), _candidate(10, 19, 0.5)) == 0

    def test_gap_days(self) -> None:
        assert gap_days(_candidate(0, 9, 0.5), _candidate(20, 29, 0.5)) == 11
        assert gap_days(_candidate(20, 29, 0.5), _candidate(0, 9, 0.5)) == 11
        assert gap_days(_candidate(0, 9, 0.5), _candidate(5, 14, 0.5)) == 0


class TestZoneSelector:
    """Tests for greedy zone selection."""

    def test_best_first_and_ranked(self) -> None:
        candidates = [
            _candidate(0, 9, 0.40),
            _candidate(30, 39, 0.60),
            _candidate(60, 69, 0.50),
        ]
        zones = ZoneSelector().select(candidates)

        assert [z.score for z in zones] == [0.60, 0.50, 0.40]
        assert [z.rank for z in zones] == [1, 2, 3]

    def test_non_detected_ignored(self) -> None:
        zones = ZoneSelector().select([_candidate(0, 9, 0.9, detected=False), _candidate(40, 49, 0.35)])
        assert len(zones) == 1
        assert zones[0].start == 40

    def test_overlapping_candidate_rejected(self) -> None:
        """A lower-scoring window sharing >= 30% of its days is dropped."""
        zones = ZoneSelector().select([_candidate(0, 19, 0.7), _candidate(14, 33, 0.6)])
        assert [(z.start, z.end) for z in zones] == [(0, 19)]

    def test_nearby_candidate_rejected(self) -> None:
        """Disjoint but within the minimum gap counts as the same event."""
        zones = ZoneSelector().select([_candidate(0, 9, 0.7), _candidate(15, 24, 0.6), _candidate(25, 34, 0.5)])
        assert [(z.start, z.end) for z in zones] == [(0, 9), (25, 34)]

    def test_max_zones(self) -> None:
        candidates = [_candidate(i * 30, i * 30 + 9, 0.3 + i * 0.01) for i in range(6)]
        zones = ZoneSelector().select(candidates)

        assert len(zones) == 3
        assert [z.start for z in zones] == [150, 120, 90]

    def test_custom_config(self) -> None:
        config = ZoneConfig(max_zones=5, max_overlap_ratio=0.5, min_gap_days=0)
        zones = ZoneSelector(config).select([_candidate(0, 9, 0.7), _candidate(6, 15, 0.6), _candidate(10, 19, 0.5)])

        # (6, 15) shares 4 of 10 days with (0, 9): allowed at 50%
        assert [(z.start, z.end) for z in zones] == [(0, 9), (6, 15)]

    def test_score_result_preserved(self) -> None:
        candidate = _candidate(0, 9, 0.45)
        zone = ZoneSelector().select([candidate])[0]

        assert zone.result is candidate.result
        assert candidate.rank is None  # selection does not mutate candidates

    def test_random_candidates_respect_constraints(self) -> None:
        """No two zones overlap >= 30% of either's length; at most three."""
        rng = np.random.default_rng(3)
        candidates = []
        for _ in range(300):
            size = int(rng.choice([10, 14, 17, 20, 24, 28, 35]))
            start = int(rng.integers(0, 200))
            candidates.append(_candidate(start, start + size - 1, float(rng.uniform(0.3, 1.0))))

        zones = ZoneSelector().select(candidates)

        assert 1 <= len(zones) <= 3
        for a, b in combinations(zones, 2):
            shared = overlap_days(a, b)
            assert shared / a.length < 0.30
            assert shared / b.length < 0.30
            assert gap_days(a, b) >= 10

    def test_empty(self) -> None:
        assert ZoneSelector().select([]) == []
