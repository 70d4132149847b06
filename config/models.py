"""Configuration data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from src.domain.signals.config.schema import (
    CacheConfig,
    DataConfig,
    DistributionConfig,
    MetricClamp,
    ScannerConfig,
    ScorerConfig,
    VDFSettings,
    ZoneConfig,
)


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_dir: str = "./logs"
    console: bool = True
    timezone: str = "America/New_York"  # Timezone for log timestamps (IANA name or "local")


@dataclass
class YahooConfig:
    """Yahoo Finance intraday source."""
    rate_limit_per_sec: float = 1.0
    prepost: bool = False  # Include pre/post-market bars


@dataclass
class AppConfig:
    """Complete application configuration."""
    vdf: VDFSettings = field(default_factory=VDFSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    yahoo: YahooConfig = field(default_factory=YahooConfig)
    raw: Dict[str, Any] = field(default_factory=dict)  # Merged YAML as loaded


__all__ = [
    "AppConfig",
    "CacheConfig",
    "DataConfig",
    "DistributionConfig",
    "LoggingConfig",
    "MetricClamp",
    "ScannerConfig",
    "ScorerConfig",
    "VDFSettings",
    "YahooConfig",
    "ZoneConfig",
]
