"""
Multi-window scanner.

Slides every configured window length across the daily history and scores
each contiguous slice. Pure function of its inputs: the history, the
baseline and the scorer configuration.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

from src.utils.logging_setup import get_logger

from ..config.schema import ScannerConfig
from ..models import CandidateWindow, DailyBar
from .accumulation_scorer import DivergenceScorer

logger = get_logger(__name__)


class WindowScanner:
    """
    Scores every (window length, start offset) slice of a daily history.

    Cost is O(sum(window_sizes) x len(history)); with history capped near one
    trading year this is a few thousand scorer calls.

    Example:
        scanner = WindowScanner(DivergenceScorer(), ScannerConfig())
        candidates = scanner.scan(daily, baseline_daily=pre_daily)
        detected = [c for c in candidates if c.detected]
    """

    def __init__(
        self,
        scorer: Optional[DivergenceScorer] = None,
        config: Optional[ScannerConfig] = None,
    ) -> None:
        self._scorer = scorer or DivergenceScorer()
        self._config = config or ScannerConfig()

    @property
    def window_sizes(self) -> List[int]:
        return list(self._config.window_sizes)

    def scan(
        self,
        daily: Sequence[DailyBar],
        baseline_daily: Sequence[DailyBar] = (),
    ) -> List[CandidateWindow]:
        """
        Score all valid windows.

        Args:
            daily: Full daily history, oldest first
            baseline_daily: Pre-context shared by every window

        Returns:
            One CandidateWindow per (size, offset), gated results included,
            ordered by window size then start offset
        """
        candidates = list(self.iter_windows(daily, baseline_daily))
        logger.debug(
            "Scanned windows",
            extra={
                "days": len(daily),
                "baseline_days": len(baseline_daily),
                "candidates": len(candidates),
                "detected": sum(1 for c in candidates if c.detected),
            },
        )
        return candidates

    def iter_windows(
        self,
        daily: Sequence[DailyBar],
        baseline_daily: Sequence[DailyBar] = (),
    ) -> Iterator[CandidateWindow]:
        """Lazily yield CandidateWindows; sizes longer than the history are skipped."""
        history = tuple(daily)
        baseline = tuple(baseline_daily)
        n = len(history)

        for size in self._config.window_sizes:
            if size > n:
                continue
            for start in range(n - size + 1):
                window = history[start:start + size]
                yield CandidateWindow(
                    start=start,
                    end=start + size - 1,
                    win_size=size,
                    start_date=window[0].date,
                    end_date=window[-1].date,
                    result=self._scorer.score(window, baseline),
                )
