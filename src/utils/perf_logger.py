"""
Performance logging utilities.

Timing context managers that log to the perf category with the current
scan ID. Log level escalates with duration.

Usage:
    with log_timing("window_scan", warn_threshold_ms=250) as ctx:
        candidates = scanner.scan(daily, baseline)
        ctx["candidates"] = len(candidates)

    async with log_timing_async("intraday_fetch", warn_threshold_ms=5000):
        bars = await provider.fetch_intraday_bars(...)

Use for scan-level operations only; never per scored window.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncGenerator, Generator, Optional

from .logging_setup import get_logger
from .trace_context import get_scan_id

logger = get_logger(__name__)


def _emit(operation: str, duration_ms: float, context: dict,
          warn_threshold_ms: float, error_threshold_ms: float) -> None:
    scan_id = get_scan_id()
    log_data = {
        "operation": operation,
        "duration_ms": round(duration_ms, 2),
        **context,
    }
    if duration_ms >= error_threshold_ms:
        logger.error(f"[{scan_id}] SLOW {operation}: {duration_ms:.1f}ms", extra=log_data)
    elif duration_ms >= warn_threshold_ms:
        logger.warning(f"[{scan_id}] {operation}: {duration_ms:.1f}ms (slow)", extra=log_data)
    else:
        logger.debug(f"[{scan_id}] {operation}: {duration_ms:.1f}ms", extra=log_data)


@contextmanager
def log_timing(
    operation: str,
    warn_threshold_ms: float = 500.0,
    error_threshold_ms: float = 2000.0,
    extra: Optional[dict] = None,
) -> Generator[dict, None, None]:
    """
    Context manager to log operation timing.

    Args:
        operation: Name of the operation being timed.
        warn_threshold_ms: Duration above which to log as WARNING.
        error_threshold_ms: Duration above which to log as ERROR.
        extra: Additional data to include in the log.

    Yields:
        Dict that can be updated with additional context during execution.
    """
    context = extra.copy() if extra else {}
    start_time = time.perf_counter()
    try:
        yield context
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        _emit(operation, duration_ms, context, warn_threshold_ms, error_threshold_ms)


@asynccontextmanager
async def log_timing_async(
    operation: str,
    warn_threshold_ms: float = 500.0,
    error_threshold_ms: float = 2000.0,
    extra: Optional[dict] = None,
) -> AsyncGenerator[dict, None]:
    """Async variant of log_timing, for awaited I/O."""
    context = extra.copy() if extra else {}
    start_time = time.perf_counter()
    try:
        yield context
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        _emit(operation, duration_ms, context, warn_threshold_ms, error_threshold_ms)
