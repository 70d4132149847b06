"""Pytest configuration and fixtures."""

from typing import Callable, List

import pytest

from factories import linspace, make_accumulation_intraday, make_daily_series
from src.domain.signals.models import DailyBar, RawBar


@pytest.fixture
def daily_series() -> Callable[..., List[DailyBar]]:
    """Factory for synthetic daily bars."""
    return make_daily_series


@pytest.fixture
def scenario_a_window() -> List[DailyBar]:
    """
    Twenty trading days (four full weeks): closes fall 8%, constant +2.8%
    net delta, daily range contracting from 1.5% to 0.7%.
    """
    n = 20
    return make_daily_series(
        closes=linspace(100.0, 92.0, n),
        deltas=[28_000.0] * n,
        volumes=[1_000_000.0] * n,
        ranges=linspace(1.5, 0.7, n),
    )


@pytest.fixture
def accumulation_intraday() -> List[RawBar]:
    return make_accumulation_intraday()
