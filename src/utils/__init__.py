"""Logging, tracing and time helpers shared across the engine."""

from .logging_setup import (
    get_log_timezone,
    get_logger,
    set_log_timezone,
    set_verbose_mode,
    setup_category_logging,
    shutdown_logging,
)
from .perf_logger import log_timing, log_timing_async
from .timezone import epoch_to_local_date, now_utc, trading_date, week_monday
from .trace_context import get_scan_id, new_scan

__all__ = [
    "get_logger",
    "setup_category_logging",
    "shutdown_logging",
    "set_log_timezone",
    "get_log_timezone",
    "set_verbose_mode",
    "get_scan_id",
    "new_scan",
    "log_timing",
    "log_timing_async",
    "now_utc",
    "trading_date",
    "epoch_to_local_date",
    "week_monday",
]
