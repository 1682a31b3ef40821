"""Root conftest for all tests - shared event and round-trip factories."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add src to sys.path so tests run without an editable install
src_root = Path(__file__).parent.parent / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from tradeperf.libraries.performance.models import (  # noqa: E402
    Candle,
    PortfolioSnapshot,
    RoundTrip,
    Trade,
    TradeAction,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def t0() -> datetime:
    """Start of the test market window."""
    return T0


@pytest.fixture
def make_candle():
    """Factory: candle `hours` after T0 closing at `close`."""

    def _make(hours: float, close: float) -> Candle:
        return Candle(start=T0 + timedelta(hours=hours), close=close)

    return _make


@pytest.fixture
def make_trade():
    """Factory: trade `hours` after T0 with the post-trade portfolio."""

    def _make(
        action: str,
        hours: float,
        price: float,
        balance: float,
        currency: float = 0.0,
        asset: float = 0.0,
    ) -> Trade:
        return Trade(
            action=TradeAction(action),
            date=T0 + timedelta(hours=hours),
            price=price,
            portfolio=PortfolioSnapshot(balance=balance, currency=currency, asset=asset),
        )

    return _make


@pytest.fixture
def make_roundtrip():
    """Factory: finalized round trip from entry/exit balances."""

    def _make(
        roundtrip_id: int,
        entry_balance: float,
        exit_balance: float,
        hours: float = 1.0,
        entry_price: float = 100.0,
        exit_price: float = 110.0,
        start_hours: float = 0.0,
    ) -> RoundTrip:
        entry_at = T0 + timedelta(hours=start_hours)
        return RoundTrip(
            id=roundtrip_id,
            entry_at=entry_at,
            entry_price=entry_price,
            entry_balance=entry_balance,
            exit_at=entry_at + timedelta(hours=hours),
            exit_price=exit_price,
            exit_balance=exit_balance,
            duration=timedelta(hours=hours),
            pnl=exit_balance - entry_balance,
            profit=(100 * exit_balance / entry_balance) - 100,
        )

    return _make
