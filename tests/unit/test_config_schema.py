"""
Unit tests for configuration schema validation and loading.

Tests:
- ValidationResult and ConfigError reporting
- Engine settings validation
- YAML loading, environment overrides and unknown keys
"""

from pathlib import Path

import pytest
import yaml

from config import ConfigManager
from src.domain.signals.config.schema import (
    ConfigError,
    DataConfig,
    MetricClamp,
    ScannerConfig,
    ScorerConfig,
    ValidationResult,
    VDFSettings,
    ZoneConfig,
    validate_vdf_settings,
)
from src.infrastructure.adapters import YahooIntradayAdapter

REPO_CONFIG_DIR = Path(__file__).parents[2] / "config"


class TestValidationResult:
    """Tests for ValidationResult dataclass."""

    def test_initial_state(self) -> None:
        """Test initial state is valid."""
        result = ValidationResult(valid=True)
        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_add_error_invalidates(self) -> None:
        """Test adding error sets valid=False."""
        result = ValidationResult(valid=True)
        result.add_error("test error", "path.to.field", "bad_value")

        assert result.valid is False
        assert len(result.errors) == 1
        assert result.errors[0].message == "test error"
        assert result.errors[0].path == "path.to.field"
        assert result.errors[0].value == "bad_value"

    def test_add_warning_keeps_valid(self) -> None:
        """Test adding warning keeps valid=True."""
        result = ValidationResult(valid=True)
        result.add_warning("test warning")

        assert result.valid is True
        assert len(result.warnings) == 1

    def test_merge_results(self) -> None:
        """Test merging validation results."""
        result1 = ValidationResult(valid=True)
        result1.add_warning("warning 1")

        result2 = ValidationResult(valid=True)
        result2.add_error("error 1")
        result2.add_warning("warning 2")

        result1.merge(result2)

        assert result1.valid is False
        assert len(result1.errors) == 1
        assert len(result1.warnings) == 2


class TestConfigError:
    """Tests for ConfigError exception."""

    def test_format_message(self) -> None:
        """Test error message formatting."""
        error = ConfigError("Invalid value", "vdf.zones.max_zones", 0)
        assert "Invalid value" in str(error)
        assert "vdf.zones.max_zones" in str(error)
        assert "0" in str(error)

    def test_format_message_no_path(self) -> None:
        error = ConfigError("Simple error")
        assert str(error) == "Simple error"


class TestSettingsValidation:
    """Tests for validate_vdf_settings."""

    def test_defaults_are_valid(self) -> None:
        result = validate_vdf_settings(VDFSettings())
        assert result.valid is True
        assert result.errors == []

    def test_weights_must_sum_to_one(self) -> None:
        weights = dict(ScorerConfig().weights, s1=0.5)
        result = validate_vdf_settings(VDFSettings(scorer=ScorerConfig(weights=weights)))

        assert result.valid is False
        assert result.errors[0].path == "scorer.weights"

    def test_unknown_metric_weight(self) -> None:
        weights = dict(ScorerConfig().weights, s9=0.0)
        result = validate_vdf_settings(VDFSettings(scorer=ScorerConfig(weights=weights)))

        assert any(e.path == "scorer.weights.s9" for e in result.errors)

    def test_non_positive_clamp_width(self) -> None:
        clamps = dict(ScorerConfig().clamps, s4=MetricClamp(offset=0.0, width=0.0))
        result = validate_vdf_settings(VDFSettings(scorer=ScorerConfig(clamps=clamps)))

        assert any(e.path == "scorer.clamps.s4.width" for e in result.errors)

    def test_unknown_metric_clamp(self) -> None:
        clamps = dict(ScorerConfig().clamps, s9=MetricClamp(offset=0.0, width=1.0))
        result = validate_vdf_settings(VDFSettings(scorer=ScorerConfig(clamps=clamps)))

        assert result.valid is False
        assert [e.path for e in result.errors] == ["scorer.clamps.s9"]

    def test_default_fetch_spans_fit_interval_history(self) -> None:
        data = DataConfig()
        history = YahooIntradayAdapter.MAX_HISTORY_DAYS[YahooIntradayAdapter.INTERVAL_MAP[data.interval]]

        assert data.chart_fetch_days <= history
        assert data.scan_fetch_days <= history
        assert validate_vdf_settings(VDFSettings()).warnings == []

    def test_fetch_span_beyond_interval_history_warns(self) -> None:
        result = validate_vdf_settings(VDFSettings(data=DataConfig(interval="1m")))

        assert result.valid is True
        assert len(result.warnings) == 2
        assert "data.chart_fetch_days (365)" in result.warnings[0]
        assert "data.scan_fetch_days (150)" in result.warnings[1]

    def test_invalid_contraction_basis(self) -> None:
        result = validate_vdf_settings(VDFSettings(scorer=ScorerConfig(contraction_basis="atr")))
        assert any(e.path == "scorer.contraction_basis" for e in result.errors)

    def test_inverted_price_gates(self) -> None:
        scorer = ScorerConfig(min_price_change_pct=20.0, max_price_change_pct=10.0)
        result = validate_vdf_settings(VDFSettings(scorer=scorer))
        assert any(e.path == "scorer.min_price_change_pct" for e in result.errors)

    def test_window_sizes(self) -> None:
        assert validate_vdf_settings(VDFSettings(scanner=ScannerConfig(window_sizes=[]))).valid is False

        result = validate_vdf_settings(VDFSettings(scanner=ScannerConfig(window_sizes=[10, 1])))
        assert result.errors[0].path == "scanner.window_sizes[1]"

    def test_zone_limits(self) -> None:
        result = validate_vdf_settings(VDFSettings(zones=ZoneConfig(max_zones=0, max_overlap_ratio=1.5)))
        paths = {e.path for e in result.errors}
        assert paths == {"zones.max_zones", "zones.max_overlap_ratio"}

    def test_clamp_apply(self) -> None:
        clamp = MetricClamp(offset=1.5, width=5.0)
        assert clamp.apply(-1.5) == 0.0
        assert clamp.apply(1.0) == pytest.approx(0.5)
        assert clamp.apply(10.0) == 1.0


class TestConfigManager:
    """YAML loading and layering."""

    def _write(self, path: Path, data: dict) -> None:
        with open(path, "w") as f:
            yaml.safe_dump(data, f)

    def test_repo_base_config_matches_defaults(self) -> None:
        config = ConfigManager(REPO_CONFIG_DIR, env="none").load()

        assert config.vdf == VDFSettings()
        assert config.logging.level == "INFO"
        assert config.yahoo.rate_limit_per_sec == 1.0

    def test_env_override_merges(self, tmp_path: Path) -> None:
        self._write(tmp_path / "base.yaml", {"vdf": {"zones": {"max_zones": 3}, "cache": {"capacity": 50}}})
        self._write(tmp_path / "prod.yaml", {"vdf": {"zones": {"max_zones": 5}}})

        config = ConfigManager(tmp_path, env="prod").load()

        assert config.vdf.zones.max_zones == 5
        assert config.vdf.zones.min_gap_days == 10
        assert config.vdf.cache.capacity == 50

    def test_partial_weights_merge_over_defaults(self, tmp_path: Path) -> None:
        self._write(
            tmp_path / "base.yaml",
            {"vdf": {"scorer": {"weights": {"s1": 0.20, "s8": 0.12}, "clamps": {"s1": {"width": 4.0}}}}},
        )
        scorer = ConfigManager(tmp_path).load().vdf.scorer

        assert scorer.weights["s1"] == 0.20
        assert scorer.weights["s2"] == 0.18
        assert scorer.clamps["s1"] == MetricClamp(offset=1.5, width=4.0)

    def test_unknown_key_rejected(self, tmp_path: Path) -> None:
        self._write(tmp_path / "base.yaml", {"vdf": {"zones": {"max_zone": 3}}})

        with pytest.raises(ConfigError) as exc_info:
            ConfigManager(tmp_path).load()
        assert exc_info.value.path == "vdf.zones"

    def test_unknown_clamp_rejected(self, tmp_path: Path) -> None:
        self._write(tmp_path / "base.yaml", {"vdf": {"scorer": {"clamps": {"s9": {"width": 2.0}}}}})

        with pytest.raises(ConfigError) as exc_info:
            ConfigManager(tmp_path).load()
        assert exc_info.value.path == "scorer.clamps.s9"

    def test_unknown_clamp_field_rejected(self, tmp_path: Path) -> None:
        self._write(tmp_path / "base.yaml", {"vdf": {"scorer": {"clamps": {"s1": {"widht": 2.0}}}}})

        with pytest.raises(ConfigError) as exc_info:
            ConfigManager(tmp_path).load()
        assert exc_info.value.path == "vdf.scorer.clamps.s1"

    def test_invalid_settings_rejected(self, tmp_path: Path) -> None:
        self._write(tmp_path / "base.yaml", {"vdf": {"data": {"interval": "1d"}}})

        with pytest.raises(ConfigError) as exc_info:
            ConfigManager(tmp_path).load()
        assert exc_info.value.path == "data.interval"

    def test_missing_base(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            ConfigManager(tmp_path).load()

    def test_empty_base_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "base.yaml").write_text("")
        config = ConfigManager(tmp_path).load()
        assert config.vdf == VDFSettings()
