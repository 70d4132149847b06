"""Exceptions raised by the volume divergence pipeline."""

from __future__ import annotations

from typing import Optional


class VDFError(Exception):
    """Base class for detection pipeline errors."""


class UpstreamFetchError(VDFError):
    """
    The market-data collaborator failed to deliver bars.

    Propagated to the caller as-is; the engine never retries.
    """

    def __init__(self, symbol: str, interval: str, cause: Optional[BaseException] = None):
        self.symbol = symbol
        self.interval = interval
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to fetch {interval} bars for {symbol}{detail}")
