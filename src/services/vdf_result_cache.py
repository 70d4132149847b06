"""
Result cache for volume divergence detection.

Contains:
- VDFResultCache: Bounded FIFO store of CacheEntry per (symbol, trading date)

Entries are immutable once written until evicted or force-refreshed. Hits do
not promote entries: eviction is strictly by insertion order.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from datetime import date
from typing import List, Optional, Tuple

from src.domain.signals.models import CacheEntry
from src.utils.logging_setup import get_logger

logger = get_logger(__name__)

CacheKey = Tuple[str, date]


class VDFResultCache:
    """Capacity-bounded FIFO cache of detection results."""

    def __init__(self, capacity: int = 200) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._cache: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @staticmethod
    def make_key(symbol: str, trading_date: date) -> CacheKey:
        return (symbol.upper(), trading_date)

    def get(self, symbol: str, trading_date: date) -> Optional[CacheEntry]:
        """Stored entry for the key, unmodified; None on miss."""
        key = self.make_key(symbol, trading_date)
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
            else:
                self._hits += 1
            return entry

    def put(self, symbol: str, trading_date: date, entry: CacheEntry) -> None:
        """
        Store an entry.

        Overwriting keeps the key's insertion position; a new key past
        capacity evicts the single oldest-inserted key.
        """
        key = self.make_key(symbol, trading_date)
        with self._lock:
            self._cache[key] = entry
            if len(self._cache) > self._capacity:
                evicted, _ = self._cache.popitem(last=False)
                logger.debug("Evicted cached result", extra={"symbol": evicted[0], "trading_date": str(evicted[1])})

    def invalidate(self, symbol: str, trading_date: date) -> bool:
        key = self.make_key(symbol, trading_date)
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def keys(self) -> List[CacheKey]:
        """Keys in insertion (eviction) order, oldest first."""
        with self._lock:
            return list(self._cache.keys())

    def stats(self) -> dict:
        with self._lock:
            return {
                "size": len(self._cache),
                "capacity": self._capacity,
                "hits": self._hits,
                "misses": self._misses,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: CacheKey) -> bool:
        with self._lock:
            return self.make_key(*key) in self._cache
