"""
Configuration manager with environment-based loading.

Supports:
- Base configuration (base.yaml)
- Environment-specific overrides (dev.yaml, prod.yaml)
- Secrets loading (secrets.yaml - gitignored)
"""

from __future__ import annotations
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Type, TypeVar
import yaml
import logging

from src.domain.signals.config.schema import ConfigError, validate_vdf_settings

from .models import (
    AppConfig,
    CacheConfig,
    DataConfig,
    DistributionConfig,
    LoggingConfig,
    MetricClamp,
    ScannerConfig,
    ScorerConfig,
    VDFSettings,
    YahooConfig,
    ZoneConfig,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfigManager:
    """
    Configuration manager with environment support.

    Loads configuration in this order:
    1. base.yaml (default config)
    2. {env}.yaml (environment-specific, e.g., dev.yaml)
    3. secrets.yaml (if exists, gitignored)

    Later configs override earlier ones.
    """

    def __init__(self, config_dir: str | Path = "config", env: str = "dev"):
        """
        Initialize config manager.

        Args:
            config_dir: Directory containing config files.
            env: Environment name (dev, prod, etc).
        """
        self.config_dir = Path(config_dir)
        self.env = env
        self.config: Dict[str, Any] = {}

    def load(self) -> AppConfig:
        """
        Load configuration from YAML files.

        Returns:
            AppConfig object.

        Raises:
            FileNotFoundError: If base config not found.
            ConfigError: If config is invalid.
        """
        base_path = self.config_dir / "base.yaml"
        if not base_path.exists():
            raise FileNotFoundError(f"Base config not found: {base_path}")

        self.config = self._load_yaml(base_path)
        logger.info(f"Loaded base config from {base_path}")

        # Load environment-specific config (optional)
        env_path = self.config_dir / f"{self.env}.yaml"
        if env_path.exists():
            env_config = self._load_yaml(env_path)
            self.config = self._merge_dicts(self.config, env_config)
            logger.info(f"Loaded {self.env} config from {env_path}")

        # Load secrets (optional, gitignored)
        secrets_path = self.config_dir / "secrets.yaml"
        if secrets_path.exists():
            secrets = self._load_yaml(secrets_path)
            self.config = self._merge_dicts(self.config, secrets)
            logger.info("Loaded secrets")

        app_config = self._parse_config()

        result = validate_vdf_settings(app_config.vdf)
        if not result.valid:
            for error in result.errors:
                logger.error(f"Config error: {error}")
            raise result.errors[0]

        return app_config

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load YAML file."""
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}

    def _merge_dicts(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _parse_config(self) -> AppConfig:
        """Parse raw dict into AppConfig."""
        vdf_raw = self.config.get("vdf", {}) or {}
        try:
            settings = VDFSettings(
                data=_build(DataConfig, vdf_raw.get("data"), "vdf.data"),
                scorer=_parse_scorer(vdf_raw.get("scorer") or {}),
                scanner=_build(ScannerConfig, vdf_raw.get("scanner"), "vdf.scanner"),
                zones=_build(ZoneConfig, vdf_raw.get("zones"), "vdf.zones"),
                distribution=_build(DistributionConfig, vdf_raw.get("distribution"), "vdf.distribution"),
                cache=_build(CacheConfig, vdf_raw.get("cache"), "vdf.cache"),
            )
            return AppConfig(
                vdf=settings,
                logging=_build(LoggingConfig, self.config.get("logging"), "logging"),
                yahoo=_build(YahooConfig, self.config.get("yahoo"), "yahoo"),
                raw=self.config,
            )
        except ConfigError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Failed to parse config: {e}")


def _build(cls: Type[T], raw: Any, path: str, **overrides: Any) -> T:
    """Instantiate a config dataclass from a YAML mapping; missing keys keep defaults."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError("Expected a mapping", path, raw)

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown keys {unknown}", path)

    values = {k: v for k, v in raw.items() if k not in overrides}
    values.update(overrides)
    return cls(**values)


def _parse_scorer(raw: Dict[str, Any]) -> ScorerConfig:
    """Scorer section: clamps and weights merge over the defaults per metric."""
    defaults = ScorerConfig()

    clamps = dict(defaults.clamps)
    for name, clamp_raw in (raw.get("clamps") or {}).items():
        if not isinstance(clamp_raw, dict):
            raise ConfigError("Expected {offset, width}", f"vdf.scorer.clamps.{name}", clamp_raw)
        unknown = sorted(set(clamp_raw) - {"offset", "width"})
        if unknown:
            raise ConfigError(f"Unknown keys {unknown}", f"vdf.scorer.clamps.{name}")
        base = clamps.get(name, MetricClamp(offset=0.0, width=1.0))
        clamps[name] = MetricClamp(
            offset=float(clamp_raw.get("offset", base.offset)),
            width=float(clamp_raw.get("width", base.width)),
        )

    weights = dict(defaults.weights)
    weights.update({name: float(w) for name, w in (raw.get("weights") or {}).items()})

    return _build(ScorerConfig, raw, "vdf.scorer", clamps=clamps, weights=weights)
