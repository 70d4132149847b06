"""
Volume Divergence Flag Configuration Module.

Provides typed settings and validation for the detection pipeline.
"""

from .schema import (
    CacheConfig,
    ConfigError,
    DataConfig,
    DistributionConfig,
    MetricClamp,
    ScannerConfig,
    ScorerConfig,
    ValidationResult,
    VDFSettings,
    ZoneConfig,
    validate_vdf_settings,
)

__all__ = [
    "CacheConfig",
    "ConfigError",
    "DataConfig",
    "DistributionConfig",
    "MetricClamp",
    "ScannerConfig",
    "ScorerConfig",
    "ValidationResult",
    "VDFSettings",
    "ZoneConfig",
    "validate_vdf_settings",
]
