"""
Configuration Schema and Validation for the Volume Divergence Flag engine.

Provides:
- Typed dataclasses for every tunable of the detection pipeline
- Validation of assembled settings
- Error reporting with location context
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

from src.utils.logging_setup import get_logger

logger = get_logger(__name__)


# Calendar days of intraday history the data provider serves per interval
INTERVAL_HISTORY_DAYS: Dict[str, int] = {
    "1m": 30,
    "2m": 60,
    "5m": 60,
    "15m": 60,
    "30m": 60,
    "1h": 730,
}

VALID_INTERVALS: Set[str] = set(INTERVAL_HISTORY_DAYS)

VALID_MODES: Set[str] = {"chart", "scan"}

VALID_CONTRACTION_BASES: Set[str] = {"range", "volume"}

METRIC_NAMES: List[str] = ["s1", "s2", "s3", "s4", "s5", "s6", "s7", "s8"]


class ConfigError(Exception):
    """Configuration validation error with context."""

    def __init__(self, message: str, path: str = "", value: Any = None):
        self.message = message
        self.path = path
        self.value = value
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.path:
            parts.append(f"at '{self.path}'")
        if self.value is not None:
            parts.append(f"(got: {self.value!r})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of configuration validation."""

    valid: bool
    errors: List[ConfigError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str, path: str = "", value: Any = None) -> None:
        self.errors.append(ConfigError(message, path, value))
        self.valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> None:
        """Merge another validation result into this one."""
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        if not other.valid:
            self.valid = False


# --- Scorer Schema ---


@dataclass(frozen=True)
class MetricClamp:
    """Affine map of a raw metric onto [0, 1]: clamp((x + offset) / width)."""

    offset: float
    width: float

    def apply(self, x: float) -> float:
        if self.width == 0:
            return 0.0
        return max(0.0, min(1.0, (x + self.offset) / self.width))


def _default_clamps() -> Dict[str, MetricClamp]:
    return {
        "s1": MetricClamp(offset=1.5, width=5.0),    # net delta %
        "s2": MetricClamp(offset=0.5, width=4.0),    # normalized cum weekly delta slope
        "s3": MetricClamp(offset=1.0, width=8.0),    # delta shift vs baseline
        "s4": MetricClamp(offset=0.0, width=18.0),   # absorption %
        "s5": MetricClamp(offset=3.0, width=12.0),   # large buy vs sell days
        "s6": MetricClamp(offset=0.3, width=1.5),    # -corr(price, cum delta)
        "s7": MetricClamp(offset=-0.2, width=0.6),   # accumulation week ratio
        "s8": MetricClamp(offset=0.0, width=0.4),    # range/volume contraction
    }


def _default_weights() -> Dict[str, float]:
    return {
        "s1": 0.22,
        "s2": 0.18,
        "s3": 0.15,
        "s4": 0.13,
        "s5": 0.08,
        "s6": 0.09,
        "s7": 0.05,
        "s8": 0.10,
    }


@dataclass
class ScorerConfig:
    """Gates, metric clamps, weights and thresholds of the divergence scorer."""

    min_weeks: int = 2
    max_price_change_pct: float = 10.0
    min_price_change_pct: float = -45.0
    min_net_delta_pct: float = -1.5
    slope_gate_enabled: bool = False
    min_delta_slope_norm: float = -0.5

    clamps: Dict[str, MetricClamp] = field(default_factory=_default_clamps)
    weights: Dict[str, float] = field(default_factory=_default_weights)

    detection_threshold: float = 0.30
    duration_base: float = 0.7
    duration_step: float = 0.075
    duration_cap: float = 1.15

    absorption_min_delta_ratio: float = 0.05
    large_day_delta_ratio: float = 0.10
    contraction_basis: str = "range"
    contraction_min_days: int = 9

    clip_outliers: bool = False
    outlier_sigma: float = 3.0

    rsi_confirmation_enabled: bool = True
    rsi_period: int = 14


# --- Pipeline Schema ---


@dataclass
class ScannerConfig:
    """Window lengths (trading days) scanned across the daily history."""

    window_sizes: List[int] = field(default_factory=lambda: [10, 14, 17, 20, 24, 28, 35])


@dataclass
class ZoneConfig:
    """Greedy zone deduplication thresholds."""

    max_zones: int = 3
    max_overlap_ratio: float = 0.30
    min_gap_days: int = 10


@dataclass
class DistributionConfig:
    """Distribution cluster detection (price up while delta negative)."""

    enabled: bool = True
    window_days: int = 10
    min_price_change_pct: float = 3.0
    max_net_delta_pct: float = -3.0
    merge_gap_days: int = 5


@dataclass
class CacheConfig:
    """Per (symbol, trading date) result cache."""

    capacity: int = 200


@dataclass
class DataConfig:
    """Market data windows and sufficiency thresholds."""

    exchange_timezone: str = "America/New_York"
    interval: str = "1h"
    chart_fetch_days: int = 365
    scan_fetch_days: int = 150
    recent_days: int = 90
    pre_context_days: int = 30
    max_history_days: int = 252
    min_raw_bars: int = 500
    min_scan_bars: int = 200
    min_daily_bars: int = 10


@dataclass
class VDFSettings:
    """All engine settings, assembled."""

    data: DataConfig = field(default_factory=DataConfig)
    scorer: ScorerConfig = field(default_factory=ScorerConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    zones: ZoneConfig = field(default_factory=ZoneConfig)
    distribution: DistributionConfig = field(default_factory=DistributionConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)


# --- Validation ---


def validate_vdf_settings(settings: VDFSettings) -> ValidationResult:
    """
    Validate assembled engine settings.

    Args:
        settings: Parsed settings

    Returns:
        ValidationResult with any errors/warnings
    """
    result = ValidationResult(valid=True)
    result.merge(_validate_scorer(settings.scorer))

    sizes = settings.scanner.window_sizes
    if not sizes:
        result.add_error("At least one window size is required", "scanner.window_sizes", sizes)
    for i, size in enumerate(sizes):
        if not isinstance(size, int) or size < 2:
            result.add_error("Window size must be an integer >= 2", f"scanner.window_sizes[{i}]", size)

    zones = settings.zones
    if zones.max_zones < 1:
        result.add_error("Must be >= 1", "zones.max_zones", zones.max_zones)
    if not 0 < zones.max_overlap_ratio <= 1:
        result.add_error("Must be in (0, 1]", "zones.max_overlap_ratio", zones.max_overlap_ratio)
    if zones.min_gap_days < 0:
        result.add_error("Must be non-negative", "zones.min_gap_days", zones.min_gap_days)

    if settings.cache.capacity < 1:
        result.add_error("Must be >= 1", "cache.capacity", settings.cache.capacity)

    data = settings.data
    if data.interval not in VALID_INTERVALS:
        result.add_error(
            f"Invalid interval, valid options: {sorted(VALID_INTERVALS)}",
            "data.interval",
            data.interval,
        )
    else:
        history = INTERVAL_HISTORY_DAYS[data.interval]
        for name in ("chart_fetch_days", "scan_fetch_days"):
            days = getattr(data, name)
            if days > history:
                result.add_warning(
                    f"data.{name} ({days}) exceeds the {history} days of {data.interval} history "
                    "available; fetches will be truncated"
                )
    if data.recent_days > data.scan_fetch_days:
        result.add_warning(
            f"data.recent_days ({data.recent_days}) exceeds data.scan_fetch_days "
            f"({data.scan_fetch_days}); scan mode will have no pre-context"
        )

    if settings.distribution.window_days < 2:
        result.add_error("Must be >= 2", "distribution.window_days", settings.distribution.window_days)

    for warning in result.warnings:
        logger.warning(warning)

    return result


def _validate_scorer(scorer: ScorerConfig) -> ValidationResult:
    result = ValidationResult(valid=True)

    missing = [name for name in METRIC_NAMES if name not in scorer.weights]
    if missing:
        result.add_error("Missing metric weights", "scorer.weights", missing)
    else:
        total = sum(scorer.weights[name] for name in METRIC_NAMES)
        if abs(total - 1.0) > 1e-6:
            result.add_error("Weights must sum to 1", "scorer.weights", round(total, 6))
    for name, weight in scorer.weights.items():
        if name not in METRIC_NAMES:
            result.add_error("Unknown metric", f"scorer.weights.{name}", weight)
        elif weight < 0:
            result.add_error("Weight must be non-negative", f"scorer.weights.{name}", weight)

    for name in METRIC_NAMES:
        clamp = scorer.clamps.get(name)
        if clamp is None:
            result.add_error("Missing metric clamp", f"scorer.clamps.{name}")
        elif clamp.width <= 0:
            result.add_error("Width must be positive", f"scorer.clamps.{name}.width", clamp.width)
    for name, clamp in scorer.clamps.items():
        if name not in METRIC_NAMES:
            result.add_error("Unknown metric", f"scorer.clamps.{name}", clamp)

    if not 0 < scorer.detection_threshold <= 1:
        result.add_error("Must be in (0, 1]", "scorer.detection_threshold", scorer.detection_threshold)
    if scorer.min_weeks < 1:
        result.add_error("Must be >= 1", "scorer.min_weeks", scorer.min_weeks)
    if scorer.min_price_change_pct >= scorer.max_price_change_pct:
        result.add_error(
            "Must be below scorer.max_price_change_pct",
            "scorer.min_price_change_pct",
            scorer.min_price_change_pct,
        )
    if scorer.contraction_basis not in VALID_CONTRACTION_BASES:
        result.add_error(
            f"Invalid basis, valid options: {sorted(VALID_CONTRACTION_BASES)}",
            "scorer.contraction_basis",
            scorer.contraction_basis,
        )
    if scorer.rsi_period < 2:
        result.add_error("Must be >= 2", "scorer.rsi_period", scorer.rsi_period)
    if scorer.outlier_sigma <= 0:
        result.add_error("Must be positive", "scorer.outlier_sigma", scorer.outlier_sigma)

    return result
