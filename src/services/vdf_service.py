"""
VDF Service - Volume divergence detection pipeline for one symbol.

Fetch intraday bars -> aggregate daily -> scan windows -> select zones ->
find distribution clusters -> cache the outcome per (symbol, trading date).

Modes:
- chart: a year of history; every zone is kept for overlays
- scan: ~5 months fetched, the last 90 days scanned with the preceding
  30 days as baseline (lighter, for bulk scans)

The only await is the fetch; everything after it runs synchronously.
Upstream failures propagate to the caller and are not cached. Concurrent
calls for one symbol and trading date share a single fetch.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from src.domain.interfaces.intraday_bar_provider import IntradayBarProvider
from src.domain.signals.config.schema import VALID_MODES, VDFSettings
from src.domain.signals.data import BarAggregator, build_weekly
from src.domain.signals.divergence import (
    SCORER_VERSION,
    DistributionDetector,
    DivergenceScorer,
    WindowScanner,
    ZoneSelector,
)
from src.domain.signals.models import CacheEntry, DailyBar, DistributionCluster, RawBar, ReasonCode, Zone
from src.utils.logging_setup import get_logger
from src.utils.perf_logger import log_timing, log_timing_async
from src.utils.timezone import epoch_to_local_date, trading_date
from src.utils.trace_context import new_scan

from .vdf_result_cache import CacheKey, VDFResultCache

logger = get_logger(__name__)

_SECONDS_PER_DAY = 86400


class VDFService:
    """
    Orchestrates detection and caching.

    Example:
        service = VDFService(YahooIntradayAdapter(), settings)
        entry = await service.detect("AAPL", mode="scan")
        print(entry.status)
    """

    def __init__(
        self,
        provider: IntradayBarProvider,
        settings: Optional[VDFSettings] = None,
        cache: Optional[VDFResultCache] = None,
    ) -> None:
        self._provider = provider
        self._settings = settings or VDFSettings()
        self._cache = cache or VDFResultCache(self._settings.cache.capacity)
        self._in_flight: Dict[CacheKey, asyncio.Future] = {}

        self._aggregator = BarAggregator(self._settings.data.exchange_timezone)
        self._scanner = WindowScanner(DivergenceScorer(self._settings.scorer), self._settings.scanner)
        self._zone_selector = ZoneSelector(self._settings.zones)
        self._distribution = DistributionDetector(self._settings.distribution)

    @property
    def cache(self) -> VDFResultCache:
        return self._cache

    @property
    def settings(self) -> VDFSettings:
        return self._settings

    async def detect(
        self,
        symbol: str,
        mode: str = "chart",
        force: bool = False,
        now: Optional[datetime] = None,
    ) -> CacheEntry:
        """
        Detection result for ``symbol`` on today's trading date.

        Args:
            symbol: Ticker symbol
            mode: "chart" or "scan"
            force: Recompute even if a result is cached for today (a detection
                already in flight for the key is joined rather than repeated)
            now: Override of the current time (trading date derivation)

        Returns:
            CacheEntry (cached or freshly computed)

        Raises:
            ValueError: If mode is unknown.
            UpstreamFetchError: If the market-data collaborator fails.
        """
        if mode not in VALID_MODES:
            raise ValueError(f"Unknown mode {mode!r}, valid options: {sorted(VALID_MODES)}")

        data = self._settings.data
        day = trading_date(now, data.exchange_timezone)

        if not force:
            cached = self._cache.get(symbol, day)
            if cached is not None:
                logger.debug(f"Cache hit for {symbol} on {day}")
                return cached

        key = self._cache.make_key(symbol, day)
        task = self._in_flight.get(key)
        if task is not None:
            logger.debug(f"Joining in-flight detection for {symbol} on {day}")
        else:
            task = asyncio.create_task(self._run_detection(symbol, mode, day, force))
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._finish_in_flight(key, done))
        # Shielded so one cancelled caller does not cancel the others
        return await asyncio.shield(task)

    async def _run_detection(self, symbol: str, mode: str, day: date, force: bool) -> CacheEntry:
        data = self._settings.data
        with new_scan() as scan_id:
            fetch_days = data.chart_fetch_days if mode == "chart" else data.scan_fetch_days
            async with log_timing_async(
                "vdf_fetch", warn_threshold_ms=5000, error_threshold_ms=30000, extra={"symbol": symbol}
            ):
                bars = await self._provider.fetch_intraday_bars(symbol, data.interval, fetch_days)

            entry = self.analyze(bars, mode)
            self._cache.put(symbol, day, entry)

            logger.info(
                f"[{scan_id}] {symbol}: {entry.status}",
                extra={
                    "symbol": symbol,
                    "mode": mode,
                    "trading_date": day.isoformat(),
                    "reason": entry.reason.value,
                    "composite_score": round(entry.composite_score, 4),
                    "forced": force,
                },
            )
            return entry

    def _finish_in_flight(self, key: CacheKey, task: asyncio.Future) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark a failure retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()

    def analyze(self, bars: Sequence[RawBar], mode: str = "chart") -> CacheEntry:
        """
        Run the synchronous pipeline over already-fetched intraday bars.

        Insufficient data yields a non-detected entry with a reason code;
        this never raises for data problems.
        """
        data = self._settings.data
        frame = self._aggregator.to_frame(bars)
        if len(frame) < data.min_raw_bars:
            return CacheEntry.empty(
                ReasonCode.INSUFFICIENT_RAW_DATA, "Insufficient intraday data", raw_bars=len(frame)
            )

        times = frame["time"]
        latest = int(times.iloc[-1])
        scan_cutoff = int(times.iloc[0]) if mode == "chart" else latest - data.recent_days * _SECONDS_PER_DAY
        pre_cutoff = scan_cutoff - data.pre_context_days * _SECONDS_PER_DAY

        scan_frame = frame[times >= scan_cutoff]
        pre_frame = frame[(times >= pre_cutoff) & (times < scan_cutoff)]
        if len(scan_frame) < data.min_scan_bars:
            return CacheEntry.empty(
                ReasonCode.INSUFFICIENT_SCAN_DATA, "Insufficient scan data", scan_bars=len(scan_frame)
            )

        daily = self._aggregator.daily_from_frame(scan_frame)
        pre_daily = self._aggregator.daily_from_frame(pre_frame)
        daily, pre_daily = self._cap_history(daily, pre_daily)

        if len(daily) < data.min_daily_bars:
            return CacheEntry.empty(
                ReasonCode.INSUFFICIENT_DAILY_DATA, "Insufficient daily data", daily_bars=len(daily)
            )

        with log_timing("vdf_scan", warn_threshold_ms=1000, extra={"days": len(daily), "mode": mode}) as ctx:
            candidates = self._scanner.scan(daily, pre_daily)
            all_zones = self._zone_selector.select(candidates)
            distribution = self._distribution.detect(daily)
            ctx["candidates"] = len(candidates)
            ctx["zones"] = len(all_zones)

        recent_cutoff = epoch_to_local_date(latest, self._aggregator.timezone) - timedelta(days=data.recent_days)
        zones = [z for z in all_zones if z.end_date >= recent_cutoff]
        best = max(zones, key=lambda z: z.score) if zones else None

        detected = best is not None
        details: Dict[str, Any] = {
            "mode": mode,
            "scorer_version": SCORER_VERSION,
            "daily": daily,
            "weekly": build_weekly(daily),
            "metrics": {
                "total_days": len(daily),
                "scan_start": daily[0].date.isoformat(),
                "scan_end": daily[-1].date.isoformat(),
                "pre_days": len(pre_daily),
                "recent_cutoff": recent_cutoff.isoformat(),
                "candidates": len(candidates),
            },
        }

        return CacheEntry(
            is_detected=detected,
            composite_score=best.score if best else 0.0,
            zones=zones,
            all_zones=all_zones,
            distribution=distribution,
            details=details,
            status=format_status(zones, distribution),
            reason=ReasonCode.ACCUMULATION_DIVERGENCE if detected else ReasonCode.BELOW_THRESHOLD,
            best_zone_weeks=best.result.weeks if best else 0,
        )

    def _cap_history(self, daily: List[DailyBar], pre_daily: List[DailyBar]):
        """
        Keep the most recent ``max_history_days``.

        Days cut from the front become the baseline, limited to the
        pre-context span before the new first day.
        """
        cap = self._settings.data.max_history_days
        if len(daily) <= cap:
            return daily, pre_daily

        overflow, daily = daily[:-cap], daily[-cap:]
        earliest = daily[0].date - timedelta(days=self._settings.data.pre_context_days)
        return daily, [d for d in overflow if d.date >= earliest]


def format_status(zones: Sequence[Zone], distribution: Sequence[DistributionCluster]) -> str:
    """One-line human summary of a detection result."""
    if not zones:
        return "No accumulation zones detected"

    best = max(zones, key=lambda z: z.score)
    status = (
        f"VD Accumulation detected: {len(zones)} zone{'s' if len(zones) > 1 else ''}, "
        f"best {best.score:.2f} ({best.result.weeks}wk)"
    )
    if distribution:
        status += f" | {len(distribution)} distribution cluster{'s' if len(distribution) > 1 else ''}"
    return status
