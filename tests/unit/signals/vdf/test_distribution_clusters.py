"""
Unit tests for distribution cluster detection.
"""

import pytest

from factories import linspace, make_daily_series
from src.domain.signals.config.schema import DistributionConfig
from src.domain.signals.divergence import DistributionDetector


class TestDistributionDetector:
    """Tests for price-up / delta-down clustering."""

    def test_flat_market_has_no_clusters(self) -> None:
        daily = make_daily_series([100.0] * 30, deltas=[-50_000.0] * 30)
        assert DistributionDetector().detect(daily) == []

    def test_rally_on_selling_forms_one_cluster(self) -> None:
        """Overlapping qualifying windows merge into a single cluster."""
        closes = [100.0] * 10 + linspace(100, 115, 15) + [115.0] * 10
        deltas = [0.0] * 10 + [-60_000.0] * 15 + [0.0] * 10
        daily = make_daily_series(closes, deltas=deltas)

        clusters = DistributionDetector().detect(daily)

        assert len(clusters) == 1
        cluster = clusters[0]
        assert cluster.count > 1
        assert cluster.span_days == cluster.end - cluster.start + 1
        assert cluster.start_date == daily[cluster.start].date
        assert cluster.end_date == daily[cluster.end].date
        assert cluster.price_change_pct > 3.0
        assert cluster.net_delta_pct < -3.0
        assert cluster.min_delta_pct <= -3.0

    def test_separate_rallies_form_separate_clusters(self) -> None:
        rally = linspace(100, 110, 10)
        closes = rally + [110.0] * 20 + [v + 10 for v in rally]
        deltas = [-60_000.0] * 10 + [0.0] * 20 + [-60_000.0] * 10
        daily = make_daily_series(closes, deltas=deltas)

        clusters = DistributionDetector().detect(daily)

        # windows starting at 0..4 still hold six selling days
        assert [(c.start, c.end) for c in clusters] == [(0, 13), (30, 39)]
        assert [c.count for c in clusters] == [5, 1]

    def test_cluster_stats_over_full_span(self) -> None:
        daily = make_daily_series(linspace(100, 110, 10), deltas=[-60_000.0] * 10)
        cluster = DistributionDetector().detect(daily)[0]

        assert cluster.span_days == 10
        assert cluster.price_change_pct == pytest.approx(10.0)
        assert cluster.net_delta == pytest.approx(-600_000.0)
        assert cluster.net_delta_pct == pytest.approx(-6.0)

    def test_disabled(self) -> None:
        daily = make_daily_series(linspace(100, 110, 10), deltas=[-60_000.0] * 10)
        assert DistributionDetector(DistributionConfig(enabled=False)).detect(daily) == []

    def test_history_shorter_than_window(self) -> None:
        daily = make_daily_series(linspace(100, 110, 9), deltas=[-60_000.0] * 9)
        assert DistributionDetector().detect(daily) == []
