"""
Category logging for the detection engine.

Every module logs through ``get_logger(__name__)``; the module path picks one
of four category loggers under the ``vdf`` root:

- system: startup, shutdown, config, CLI, orchestration
- data: intraday fetches, bar aggregation, result cache
- signal: scoring, window scans, zone selection, distribution
- perf: timing of fetch and scan phases

``setup_category_logging`` gives each category its own JSON-lines file per
run (written off-thread through a queue) plus optional colored console
output. Each line carries the active scan ID from trace_context.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import re
import sys
from datetime import datetime
from pathlib import Path
from queue import Queue
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from .trace_context import get_scan_id

ROOT_LOGGER = "vdf"

# Category -> file name tag
CATEGORY_FILES: Dict[str, str] = {
    "system": "sys",
    "data": "dat",
    "signal": "sig",
    "perf": "prf",
}
CATEGORIES = list(CATEGORY_FILES)

# First matching prefix wins, so narrower paths go first
MODULE_ROUTING: List[tuple[str, str]] = [
    ("src.infrastructure.adapters", "data"),
    ("src.domain.signals.data", "data"),
    ("src.domain.signals", "signal"),
    ("src.services.vdf_result_cache", "data"),
    ("src.utils.perf_logger", "perf"),
    ("src.services", "system"),
]

_log_timezone: Optional[ZoneInfo] = None
_verbose: bool = False
_run_number: Optional[int] = None
_listeners: List[logging.handlers.QueueListener] = []


def get_category_for_module(module_name: str) -> str:
    """Category for a dotted module path; anything unrouted is ``system``."""
    for prefix, category in MODULE_ROUTING:
        if module_name.startswith(prefix):
            return category
    return "system"


def get_logger(module_name: str) -> logging.Logger:
    """
    Category logger for a module.

    Example:
        logger = get_logger(__name__)
        logger.info("Scanning", extra={"symbol": "AAPL"})
    """
    return logging.getLogger(f"{ROOT_LOGGER}.{get_category_for_module(module_name)}")


def set_log_timezone(tz: Optional[str] = None) -> None:
    """IANA zone for log timestamps; None or "local" means system local time."""
    global _log_timezone
    _log_timezone = None if tz in (None, "local") else ZoneInfo(tz)


def get_log_timezone() -> Optional[ZoneInfo]:
    return _log_timezone


def set_verbose_mode(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def is_verbose_mode() -> bool:
    return _verbose


def format_timestamp(created: float) -> str:
    """ISO timestamp of a record's creation time in the log timezone."""
    if _log_timezone is None:
        return datetime.fromtimestamp(created).isoformat()
    return datetime.fromtimestamp(created, tz=_log_timezone).isoformat()


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Fields passed through ``extra={...}`` are collected under ``data``.
    """

    _STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": format_timestamp(record.created),
            "level": record.levelname,
            "cat": record.name.rpartition(".")[2] if record.name.startswith(f"{ROOT_LOGGER}.") else "system",
            "scan": get_scan_id(),
            "msg": record.getMessage(),
        }
        data = {k: v for k, v in vars(record).items() if k not in self._STANDARD_ATTRS}
        if data:
            entry["data"] = data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """``[LEVEL] [scan] message``, colored by level on a TTY."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level = f"[{record.levelname:7}]"
        if self.use_colors:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"
        return f"{level} [{get_scan_id()}] {record.getMessage()}"


def _next_run_number(day_dir: Path, env: str, date_str: str) -> int:
    """One past the highest run number already on disk for this env and day."""
    pattern = re.compile(rf"^vdf_{re.escape(env)}_[a-z]{{3}}_{re.escape(date_str)}_(\d+)\.log$")
    runs = [int(m.group(1)) for p in day_dir.glob("*.log") if (m := pattern.match(p.name))]
    return max(runs, default=0) + 1


def reset_session_run_number() -> None:
    """Forget the run number so the next setup picks a fresh one."""
    global _run_number
    _run_number = None


def setup_category_logging(
    env: str,
    log_dir: str = "./logs",
    level: str = "INFO",
    console: bool = False,
    verbose: bool = False,
) -> Dict[str, logging.Logger]:
    """
    Attach file (and optionally console) handlers to every category logger.

    Files land in ``{log_dir}/{date}/vdf_{env}_{tag}_{date}_{run}.log``; the
    run number is fixed for the life of the process.

    Args:
        env: Environment name, part of the file name.
        log_dir: Base directory for log files.
        level: Level for files when not verbose.
        console: Also write WARNING and above (DEBUG when verbose) to stderr.
        verbose: Force DEBUG everywhere.

    Returns:
        Category name -> configured logger.
    """
    global _run_number
    shutdown_logging()
    set_verbose_mode(verbose)

    date_str = datetime.now().strftime("%Y-%m-%d")
    day_dir = Path(log_dir) / date_str
    day_dir.mkdir(parents=True, exist_ok=True)
    if _run_number is None:
        _run_number = _next_run_number(day_dir, env, date_str)

    effective_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)
    loggers: Dict[str, logging.Logger] = {}

    for category, tag in CATEGORY_FILES.items():
        logger = logging.getLogger(f"{ROOT_LOGGER}.{category}")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(effective_level)
        logger.propagate = False

        file_handler = logging.FileHandler(
            day_dir / f"vdf_{env}_{tag}_{date_str}_{_run_number}.log", encoding="utf-8"
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler.setLevel(effective_level)

        queue: Queue = Queue(-1)
        logger.addHandler(logging.handlers.QueueHandler(queue))
        listener = logging.handlers.QueueListener(queue, file_handler, respect_handler_level=True)
        listener.start()
        _listeners.append(listener)

        if console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(ConsoleFormatter(use_colors=sys.stderr.isatty()))
            console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
            logger.addHandler(console_handler)

        loggers[category] = logger

    return loggers


def shutdown_logging() -> None:
    """Stop queue listeners, flushing pending records to their files."""
    while _listeners:
        listener = _listeners.pop()
        listener.stop()
        for handler in listener.handlers:
            handler.close()
