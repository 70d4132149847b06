"""
Statistics helpers for volume-delta scoring.

All functions accept any numeric sequence and return plain floats. Every
zero denominator (empty input, zero variance) yields 0 rather than NaN.
"""

from __future__ import annotations

from typing import NamedTuple, Sequence, Union

import numpy as np

ArrayLike = Union[Sequence[float], np.ndarray]


class LinRegResult(NamedTuple):
    slope: float
    r2: float


def mean(values: ArrayLike) -> float:
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return 0.0
    return float(arr.mean())


def std(values: ArrayLike) -> float:
    """Sample standard deviation (n - 1); 0 for fewer than two values."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size < 2:
        return 0.0
    return float(arr.std(ddof=1))


def lin_reg(xs: ArrayLike, ys: ArrayLike) -> LinRegResult:
    """
    Ordinary least squares fit of ys on xs.

    Returns:
        LinRegResult(slope, r2); both 0 when xs has no variance or n < 2.
    """
    x = np.asarray(xs, dtype=np.float64)
    y = np.asarray(ys, dtype=np.float64)
    n = x.size
    if n < 2:
        return LinRegResult(0.0, 0.0)

    d = n * np.dot(x, x) - x.sum() ** 2
    if d == 0:
        return LinRegResult(0.0, 0.0)

    slope = (n * np.dot(x, y) - x.sum() * y.sum()) / d
    intercept = (y.sum() - slope * x.sum()) / n

    ss_tot = float(np.sum((y - y.mean()) ** 2))
    ss_res = float(np.sum((y - intercept - slope * x) ** 2))
    r2 = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0
    return LinRegResult(float(slope), float(r2))


def pearson(a: ArrayLike, b: ArrayLike) -> float:
    """Pearson correlation; 0 if either series is constant or empty."""
    x = np.asarray(a, dtype=np.float64)
    y = np.asarray(b, dtype=np.float64)
    if x.size == 0 or x.size != y.size:
        return 0.0
    dx = x - x.mean()
    dy = y - y.mean()
    var_x = float(np.dot(dx, dx))
    var_y = float(np.dot(dy, dy))
    if var_x <= 0 or var_y <= 0:
        return 0.0
    return float(np.dot(dx, dy) / np.sqrt(var_x * var_y))


def wilder_rsi(values: ArrayLike, period: int = 14) -> np.ndarray:
    """
    Wilder-smoothed RSI of an arbitrary series.

    The first ``period`` entries are NaN (warmup). A span with no losses
    reads 100.

    Args:
        values: Any numeric series (price, cumulative delta, ...)
        period: Smoothing period

    Returns:
        float64 array, same length as ``values``
    """
    arr = np.asarray(values, dtype=np.float64)
    n = arr.size
    rsi = np.full(n, np.nan, dtype=np.float64)
    if n < period + 1:
        return rsi

    changes = np.diff(arr)
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)

    avg_gain = gains[:period].mean()
    avg_loss = losses[:period].mean()
    rsi[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, n):
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        rsi[i] = _rsi_value(avg_gain, avg_loss)

    return rsi


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    return 100.0 - 100.0 / (1.0 + avg_gain / avg_loss)
