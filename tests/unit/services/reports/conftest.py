"""Shared fixtures for reporting service tests."""

from decimal import Decimal

import pytest

from tradeperf.libraries.performance.models import PerformanceReport


@pytest.fixture
def sample_report() -> PerformanceReport:
    """Final report of a run with one loss and one win."""
    return PerformanceReport(
        currency="USDT",
        asset="BTC",
        start_time="2024-01-01 00:00:00",
        end_time="2024-01-01 04:00:00",
        timespan="4 hours",
        market=10.0,
        balance=1045.0,
        profit=45.0,
        relative_profit=4.5,
        max_drawdown=Decimal("-5.0"),
        yearly_profit=Decimal("98615.47500000"),
        relative_yearly_profit=Decimal("9861.54750000"),
        start_price=100.0,
        end_price=110.0,
        trades=4,
        start_balance=1000.0,
        sharpe=0.3333333333333333,
        profitable_trips=Decimal("50.0"),
        average_profit=Decimal("10.0"),
        max_profit=Decimal("10.0"),
        average_loss=Decimal("-5.0"),
        max_loss=Decimal("-5.0"),
        alpha=35.0,
    )
