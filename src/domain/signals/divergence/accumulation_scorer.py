"""
Accumulation Divergence Scorer.

Scores a window of daily volume-delta bars for stealth accumulation: price
flat-to-declining while inferred net buying builds.

Pipeline per window:
1. Gates (insufficient weeks, price rising/crashing, concordant selling,
   optional slope gate) short-circuit to a zero score with a reason code.
2. Eight metrics, each mapped onto [0, 1] by a configurable clamp:
   s1 net delta, s2 cumulative weekly delta slope, s3 delta shift vs
   baseline, s4 absorption days, s5 large buy vs sell days, s6 price/delta
   anti-correlation, s7 accumulation week ratio, s8 range contraction.
3. Weighted composite times a duration multiplier that rewards longer
   windows, capped to 1.

A delta-RSI divergence check is reported alongside as confirmation; it
does not enter the score.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from src.utils.logging_setup import get_logger
from src.utils.timezone import week_monday

from ..config.schema import METRIC_NAMES, ScorerConfig
from ..data.bar_aggregator import build_weekly
from ..models import DailyBar, ReasonCode, ScoreResult, WeeklyBar
from .vd_stats import lin_reg, mean, pearson, std, wilder_rsi

logger = get_logger(__name__)

# Bumped whenever gates, metrics or weights change meaning
SCORER_VERSION = "vdf-8c-1"


def composite_score(components: Mapping[str, float], weights: Mapping[str, float]) -> float:
    """Weighted sum of the clamped components s1..s8."""
    return float(sum(weights[name] * components[name] for name in METRIC_NAMES))


def duration_multiplier(weeks: int, config: ScorerConfig) -> float:
    """Linear ramp from ``duration_base`` at the minimum week count, capped."""
    return min(
        config.duration_cap,
        config.duration_base + (weeks - config.min_weeks) * config.duration_step,
    )


class DivergenceScorer:
    """
    Composite accumulation-divergence score for one candidate window.

    Stateless apart from its configuration; safe to share across scans.

    Example:
        scorer = DivergenceScorer()
        result = scorer.score(daily[40:60], baseline_daily=daily[10:40])
        if result.detected:
            print(result.score, result.metrics["net_delta_pct"])
    """

    def __init__(self, config: Optional[ScorerConfig] = None) -> None:
        self._config = config or ScorerConfig()

    @property
    def config(self) -> ScorerConfig:
        return self._config

    def score(
        self,
        window_daily: Sequence[DailyBar],
        baseline_daily: Sequence[DailyBar] = (),
    ) -> ScoreResult:
        """
        Score a candidate window against its preceding baseline.

        Args:
            window_daily: Contiguous daily bars of the candidate window
            baseline_daily: Daily bars preceding the window, used only to
                normalize the delta shift; may be empty

        Returns:
            ScoreResult; gated or insufficient windows score 0
        """
        cfg = self._config
        if not window_daily:
            return _reject(ReasonCode.INSUFFICIENT_DATA)

        weeks = build_weekly(window_daily)
        n_weeks = len(weeks)
        if n_weeks < cfg.min_weeks:
            return _reject(ReasonCode.INSUFFICIENT_WEEKS, n_weeks)

        n = len(window_daily)
        closes = np.array([d.close for d in window_daily], dtype=np.float64)
        first_close = closes[0]
        price_change = (closes[-1] - first_close) / first_close * 100 if first_close != 0 else 0.0

        if price_change > cfg.max_price_change_pct:
            return _reject(ReasonCode.PRICE_RISING, n_weeks, overall_price_change=price_change)
        if price_change < cfg.min_price_change_pct:
            return _reject(ReasonCode.CRASH, n_weeks, overall_price_change=price_change)

        volumes = np.array([d.total_vol for d in window_daily], dtype=np.float64)
        raw_deltas = np.array([d.delta for d in window_daily], dtype=np.float64)
        total_vol = float(volumes.sum())
        avg_daily_vol = total_vol / n

        deltas, capped_days = self._effective_deltas(window_daily, raw_deltas)
        net_delta = float(deltas.sum())
        net_delta_pct = net_delta / total_vol * 100 if total_vol > 0 else 0.0

        if net_delta_pct < cfg.min_net_delta_pct:
            return _reject(
                ReasonCode.CONCORDANT_SELLING,
                n_weeks,
                net_delta_pct=net_delta_pct,
                overall_price_change=price_change,
            )

        weekly_deltas = _weekly_deltas(window_daily, weeks, deltas)
        avg_weekly_vol = mean([w.total_vol for w in weeks])
        slope = lin_reg(np.arange(n_weeks), np.cumsum(weekly_deltas)).slope
        delta_slope_norm = slope / avg_weekly_vol * 100 if avg_weekly_vol > 0 else 0.0

        if cfg.slope_gate_enabled and delta_slope_norm < cfg.min_delta_slope_norm:
            return _reject(
                ReasonCode.SLOPE_GATE,
                n_weeks,
                net_delta_pct=net_delta_pct,
                overall_price_change=price_change,
                delta_slope_norm=delta_slope_norm,
            )

        # Empty baseline: compare the window with itself (zero shift)
        window_avg_delta = net_delta / n
        if baseline_daily:
            base_avg_delta = mean([d.delta for d in baseline_daily])
            base_avg_vol = mean([d.total_vol for d in baseline_daily])
        else:
            base_avg_delta = window_avg_delta
            base_avg_vol = avg_daily_vol
        delta_shift = (window_avg_delta - base_avg_delta) / base_avg_vol * 100 if base_avg_vol > 0 else 0.0

        absorption_pct = self._absorption_pct(closes, raw_deltas, avg_daily_vol)

        large_threshold = cfg.large_day_delta_ratio * avg_daily_vol
        large_buy_days = int(np.count_nonzero(raw_deltas > large_threshold))
        large_sell_days = int(np.count_nonzero(raw_deltas < -large_threshold))
        large_buy_vs_sell = (large_buy_days - large_sell_days) / n * 100

        cum_deltas = np.cumsum(deltas)
        price_delta_corr = pearson(closes, cum_deltas)

        accum_weeks = int(np.count_nonzero(weekly_deltas > 0))
        accum_week_ratio = accum_weeks / n_weeks

        contraction = self._contraction(window_daily)

        inputs = {
            "s1": net_delta_pct,
            "s2": delta_slope_norm,
            "s3": delta_shift,
            "s4": absorption_pct,
            "s5": large_buy_vs_sell,
            "s6": -price_delta_corr,
            "s7": accum_week_ratio,
            "s8": -contraction,
        }
        components = {name: cfg.clamps[name].apply(inputs[name]) for name in METRIC_NAMES}

        raw_score = composite_score(components, cfg.weights)
        multiplier = duration_multiplier(n_weeks, cfg)
        score = max(0.0, min(1.0, raw_score * multiplier))
        detected = score >= cfg.detection_threshold

        metrics: Dict[str, Any] = {
            "scorer_version": SCORER_VERSION,
            "overall_price_change": price_change,
            "net_delta_pct": net_delta_pct,
            "delta_slope_norm": delta_slope_norm,
            "delta_shift": delta_shift,
            "absorption_pct": absorption_pct,
            "large_buy_vs_sell": large_buy_vs_sell,
            "price_delta_corr": price_delta_corr,
            "accum_week_ratio": accum_week_ratio,
            "contraction": contraction,
            **components,
            "raw_score": raw_score,
            "capped_days": capped_days,
        }
        if cfg.rsi_confirmation_enabled:
            metrics.update(self._rsi_confirmation(closes, cum_deltas))

        return ScoreResult(
            score=score,
            detected=detected,
            reason=ReasonCode.ACCUMULATION_DIVERGENCE if detected else ReasonCode.BELOW_THRESHOLD,
            weeks=n_weeks,
            accum_weeks=accum_weeks,
            metrics=metrics,
            duration_multiplier=multiplier,
        )

    def _effective_deltas(
        self, daily: Sequence[DailyBar], raw_deltas: np.ndarray
    ) -> Tuple[np.ndarray, List[Dict[str, Any]]]:
        """Daily deltas, clipped to mean ± k·std when outlier clipping is on."""
        if not self._config.clip_outliers:
            return raw_deltas, []

        center = mean(raw_deltas)
        spread = self._config.outlier_sigma * std(raw_deltas)
        clipped = np.clip(raw_deltas, center - spread, center + spread)

        capped_days = [
            {"date": daily[i].date.isoformat(), "original": float(raw_deltas[i]), "capped": float(clipped[i])}
            for i in np.flatnonzero(clipped != raw_deltas)
        ]
        if capped_days:
            logger.debug(
                "Clipped outlier deltas",
                extra={"capped": len(capped_days), "window_start": daily[0].date.isoformat()},
            )
        return clipped, capped_days

    def _absorption_pct(self, closes: np.ndarray, deltas: np.ndarray, avg_daily_vol: float) -> float:
        """Share of day-over-day declines met with meaningful net buying, in %."""
        n = closes.size
        if n < 2:
            return 0.0
        down = closes[1:] < closes[:-1]
        buying = (deltas[1:] > 0) & (deltas[1:] >= self._config.absorption_min_delta_ratio * avg_daily_vol)
        return float(np.count_nonzero(down & buying)) / (n - 1) * 100

    def _contraction(self, daily: Sequence[DailyBar]) -> float:
        """
        Relative change from the first third to the last third of the window.

        Negative values mean the daily range (or volume) contracted. Returns 0
        for windows shorter than ``contraction_min_days``.
        """
        n = len(daily)
        if n < self._config.contraction_min_days:
            return 0.0

        if self._config.contraction_basis == "volume":
            series = [d.total_vol for d in daily]
        else:
            series = [d.range_pct for d in daily]

        third = n // 3
        first = mean(series[:third])
        last = mean(series[2 * third:])
        if first <= 0:
            return 0.0
        return (last - first) / first

    def _rsi_confirmation(self, closes: np.ndarray, cum_deltas: np.ndarray) -> Dict[str, Any]:
        """
        RSI of the cumulative delta vs price over the window.

        Bullish divergence: the last quarter's price low undercuts the first
        quarter's while the delta-RSI low holds higher.
        """
        rsi = wilder_rsi(cum_deltas, self._config.rsi_period)
        valid = np.isfinite(rsi)
        valid_rsi = rsi[valid]
        valid_prices = closes[valid]

        slope = lin_reg(np.arange(valid_rsi.size), valid_rsi).slope if valid_rsi.size >= 2 else 0.0
        divergence = False

        q = valid_rsi.size // 4
        if q >= 2:
            price_lower_low = valid_prices[3 * q:].min() < valid_prices[:q].min()
            rsi_higher_low = valid_rsi[3 * q:].min() > valid_rsi[:q].min()
            divergence = bool(price_lower_low and rsi_higher_low)

        return {"vd_rsi_divergence": divergence, "vd_rsi_slope": slope}


def _reject(reason: ReasonCode, weeks: int = 0, **metrics: Any) -> ScoreResult:
    return ScoreResult.rejected(reason, weeks, scorer_version=SCORER_VERSION, **metrics)


def _weekly_deltas(
    daily: Sequence[DailyBar], weeks: Sequence[WeeklyBar], deltas: np.ndarray
) -> np.ndarray:
    """Per-week sums of ``deltas`` (which may be clipped), aligned with ``weeks``."""
    index = {w.week_start: i for i, w in enumerate(weeks)}
    totals = np.zeros(len(weeks), dtype=np.float64)
    for day, delta in zip(daily, deltas):
        totals[index[week_monday(day.date)]] += delta
    return totals
