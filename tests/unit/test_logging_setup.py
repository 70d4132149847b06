"""
Tests for category logging, scan trace IDs and timing logs.
"""

import logging
from pathlib import Path

import pytest

from src.utils.logging_setup import (
    CATEGORIES,
    ROOT_LOGGER,
    get_category_for_module,
    get_logger,
    reset_session_run_number,
    setup_category_logging,
    shutdown_logging,
)
from src.utils.perf_logger import log_timing
from src.utils.trace_context import get_scan_id, new_scan


@pytest.fixture
def restore_category_loggers():
    yield
    shutdown_logging()
    reset_session_run_number()
    for category in CATEGORIES:
        logger = logging.getLogger(f"{ROOT_LOGGER}.{category}")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


class TestCategoryRouting:
    @pytest.mark.parametrize(
        "module,category",
        [
            ("src.infrastructure.adapters.yahoo.intraday_adapter", "data"),
            ("src.domain.signals.data.bar_aggregator", "data"),
            ("src.domain.signals.divergence.zone_selector", "signal"),
            ("src.services.vdf_result_cache", "data"),
            ("src.services.vdf_service", "system"),
            ("src.utils.perf_logger", "perf"),
            ("main", "system"),
        ],
    )
    def test_routing(self, module: str, category: str) -> None:
        assert get_category_for_module(module) == category

    def test_logger_name(self) -> None:
        assert get_logger("src.domain.signals.divergence.distribution").name == "vdf.signal"

    def test_setup_writes_one_file_per_category(self, tmp_path: Path, restore_category_loggers) -> None:
        loggers = setup_category_logging("test", log_dir=str(tmp_path), level="INFO")
        loggers["signal"].info("hello")
        shutdown_logging()

        files = sorted(p.name for p in tmp_path.rglob("*.log"))
        assert len(files) == len(CATEGORIES)
        assert any("_sig_" in name for name in files)
        sig_file = next(p for p in tmp_path.rglob("*_sig_*.log"))
        assert "hello" in sig_file.read_text()


class TestScanContext:
    def test_outside_scan(self) -> None:
        assert get_scan_id() == "------"

    def test_scan_id_is_scoped(self) -> None:
        with new_scan() as outer:
            assert len(outer) == 6
            assert get_scan_id() == outer
            with new_scan("abc123") as inner:
                assert get_scan_id() == inner == "abc123"
            assert get_scan_id() == outer
        assert get_scan_id() == "------"


class TestLogTiming:
    def test_fast_operation_logs_debug(self, caplog) -> None:
        caplog.set_level(logging.DEBUG, logger="vdf.perf")
        with new_scan("feed01"):
            with log_timing("vdf_scan", extra={"days": 60}) as ctx:
                ctx["zones"] = 2

        record = caplog.records[-1]
        assert record.levelno == logging.DEBUG
        assert "[feed01] vdf_scan" in record.getMessage()
        assert record.days == 60
        assert record.zones == 2

    def test_slow_operation_logs_warning(self, caplog) -> None:
        caplog.set_level(logging.DEBUG, logger="vdf.perf")
        with log_timing("vdf_fetch", warn_threshold_ms=0.0, error_threshold_ms=1e9):
            pass

        assert caplog.records[-1].levelno == logging.WARNING
