"""
Trace context for correlating logs across a single detection scan.

Provides:
- Unique scan IDs (6-char hex) for each detection run
- Context propagation via contextvars (async-safe)

Usage:
    with new_scan() as scan_id:
        entry = await service.detect("AAPL")

    # In any module
    from src.utils.trace_context import get_scan_id
    logger.info(f"[{get_scan_id()}] Scoring...")
"""

from __future__ import annotations

import secrets
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Generator, Optional

_scan_id: ContextVar[Optional[str]] = ContextVar("scan_id", default=None)


def generate_scan_id() -> str:
    """6-character hex string (e.g., "a7f3b2")."""
    return secrets.token_hex(3)


def get_scan_id() -> str:
    """Current scan ID, or "------" outside of a scan."""
    scan_id = _scan_id.get()
    return scan_id if scan_id else "------"


@contextmanager
def new_scan(scan_id: Optional[str] = None) -> Generator[str, None, None]:
    """
    Run the enclosed block under a fresh scan ID.

    The previous ID (if any) is restored on exit, so nested scans and
    concurrent asyncio tasks each see their own value.
    """
    token = _scan_id.set(scan_id or generate_scan_id())
    try:
        yield _scan_id.get()
    finally:
        _scan_id.reset(token)
