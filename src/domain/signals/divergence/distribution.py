"""
Distribution Cluster Detection.

The mirror image of accumulation: fixed-length windows where price rallies
while net volume delta is clearly negative (selling into strength). Nearby
windows are merged into clusters, which are then re-measured over their
full span.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from src.utils.logging_setup import get_logger

from ..config.schema import DistributionConfig
from ..models import DailyBar, DistributionCluster

logger = get_logger(__name__)


class DistributionDetector:
    """
    Finds distribution clusters in a daily history.

    Example:
        clusters = DistributionDetector().detect(daily)
        for c in clusters:
            print(c.start_date, c.end_date, c.net_delta_pct)
    """

    def __init__(self, config: Optional[DistributionConfig] = None) -> None:
        self._config = config or DistributionConfig()

    def detect(self, daily: Sequence[DailyBar]) -> List[DistributionCluster]:
        cfg = self._config
        if not cfg.enabled or len(daily) < cfg.window_days:
            return []

        clusters: List[DistributionCluster] = []
        size = cfg.window_days

        for start in range(len(daily) - size + 1):
            window = daily[start:start + size]
            price_change = _price_change(window)
            net_delta_pct = _net_delta_pct(window)
            if price_change <= cfg.min_price_change_pct or net_delta_pct >= cfg.max_net_delta_pct:
                continue

            end = start + size - 1
            cluster = next((c for c in clusters if start <= c.end + cfg.merge_gap_days), None)
            if cluster is None:
                clusters.append(
                    DistributionCluster(
                        start=start,
                        end=end,
                        start_date=window[0].date,
                        end_date=window[-1].date,
                        count=1,
                        max_price_change=price_change,
                        min_delta_pct=net_delta_pct,
                    )
                )
                continue

            cluster.end = max(cluster.end, end)
            cluster.end_date = daily[cluster.end].date
            cluster.count += 1
            cluster.max_price_change = max(cluster.max_price_change, price_change)
            cluster.min_delta_pct = min(cluster.min_delta_pct, net_delta_pct)

        for cluster in clusters:
            span = daily[cluster.start:cluster.end + 1]
            cluster.span_days = len(span)
            cluster.price_change_pct = _price_change(span)
            cluster.net_delta = sum(d.delta for d in span)
            cluster.net_delta_pct = _net_delta_pct(span)

        if clusters:
            logger.debug(f"Found {len(clusters)} distribution clusters over {len(daily)} days")
        return clusters


def _price_change(days: Sequence[DailyBar]) -> float:
    first = days[0].close
    return (days[-1].close - first) / first * 100 if first != 0 else 0.0


def _net_delta_pct(days: Sequence[DailyBar]) -> float:
    total_vol = sum(d.total_vol for d in days)
    return sum(d.delta for d in days) / total_vol * 100 if total_vol > 0 else 0.0
