"""Performance analysis data models.

Pydantic models for the analyzer's inputs (candles, portfolio snapshots,
trades) and outputs (finalized round trips and performance reports).
Inputs and outputs are immutable; the analyzer copies what it keeps.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator


def to_utc(v: Any) -> datetime:
    """Parse ISO strings and normalise datetimes to UTC (naive means UTC)."""
    if isinstance(v, str):
        dt = datetime.fromisoformat(v.replace("Z", "+00:00"))
    elif isinstance(v, datetime):
        dt = v
    else:
        raise ValueError(f"Cannot parse datetime from {type(v)}: {v}")

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class TradeAction(str, Enum):
    """Direction of an executed trade."""

    BUY = "buy"
    SELL = "sell"


class RoundTripState(str, Enum):
    """
    Position lifecycle state of the round-trip tracker.

    FLAT:   no entry recorded
    OPEN:   entry recorded, exit absent
    CLOSED: entry and exit recorded, waiting for a buy to reopen
    """

    FLAT = "flat"
    OPEN = "open"
    CLOSED = "closed"


class Candle(BaseModel):
    """Price candle; only the start time and close price matter here."""

    start: datetime
    close: float = Field(gt=0)

    model_config = {"frozen": True}

    @field_validator("start", mode="before")
    @classmethod
    def ensure_utc(cls, v: Any) -> datetime:
        """Ensure candle start is UTC timezone-aware."""
        return to_utc(v)


class PortfolioSnapshot(BaseModel):
    """
    Portfolio state at a point in time.

    balance is valued in the quote currency; currency and asset are the
    quantities held of each side of the pair.
    """

    balance: float
    currency: float
    asset: float

    model_config = {"frozen": True}


class Trade(BaseModel):
    """Executed trade with the portfolio as it stood right after execution."""

    action: TradeAction
    date: datetime
    price: float = Field(gt=0)
    portfolio: PortfolioSnapshot

    model_config = {"frozen": True}

    @field_validator("date", mode="before")
    @classmethod
    def ensure_utc(cls, v: Any) -> datetime:
        """Ensure trade date is UTC timezone-aware."""
        return to_utc(v)


class RoundTripLeg(BaseModel):
    """Entry or exit side of a round trip in progress."""

    date: datetime
    price: float
    total: float

    model_config = {"frozen": True}


class RoundTrip(BaseModel):
    """
    A completed buy-then-sell position lifecycle.

    Appended once to the ledger and never mutated afterwards.
    profit is the percentage return from entry balance to exit balance.
    """

    id: int = Field(ge=0)
    entry_at: datetime
    entry_price: float
    entry_balance: float
    exit_at: datetime
    exit_price: float
    exit_balance: float
    duration: timedelta
    pnl: float
    profit: float

    model_config = {"frozen": True}

    @property
    def is_winner(self) -> bool:
        """Round trip closed with a positive return."""
        return self.profit > 0

    @property
    def duration_hours(self) -> float:
        """Holding time in hours."""
        return self.duration.total_seconds() / 3600

    def to_dict(self) -> dict[str, Any]:
        """Flat representation using the field names relays expect."""
        return {
            "id": self.id,
            "entryAt": self.entry_at.isoformat(),
            "entryPrice": self.entry_price,
            "entryBalance": self.entry_balance,
            "exitAt": self.exit_at.isoformat(),
            "exitPrice": self.exit_price,
            "exitBalance": self.exit_balance,
            "duration": int(self.duration.total_seconds() * 1000),
            "pnl": self.pnl,
            "profit": self.profit,
        }


# Report field name -> wire name used by downstream relays
_REPORT_WIRE_NAMES = {
    "currency": "currency",
    "asset": "asset",
    "start_time": "startTime",
    "end_time": "endTime",
    "timespan": "timespan",
    "market": "market",
    "balance": "balance",
    "profit": "profit",
    "relative_profit": "relativeProfit",
    "max_drawdown": "maxDrawdown",
    "yearly_profit": "yearlyProfit",
    "relative_yearly_profit": "relativeYearlyProfit",
    "start_price": "startPrice",
    "end_price": "endPrice",
    "trades": "trades",
    "start_balance": "startBalance",
    "sharpe": "sharpe",
    "profitable_trips": "profitableTrips",
    "average_profit": "averageProfit",
    "max_profit": "maxProfit",
    "average_loss": "averageLoss",
    "max_loss": "maxLoss",
    "alpha": "alpha",
}


class PerformanceReport(BaseModel):
    """
    Point-in-time or final performance snapshot.

    Percent and extrema fields are rounded to 1 decimal, yearly figures to
    8 decimals. sharpe is None until at least two round trips closed.
    """

    currency: str
    asset: str

    start_time: str  # YYYY-MM-DD HH:MM:SS (UTC)
    end_time: str
    timespan: str  # Humanized, e.g. "3 months"
    market: float  # Buy-and-hold return over the window (%)

    balance: float
    profit: float
    relative_profit: float
    max_drawdown: Decimal

    yearly_profit: Decimal
    relative_yearly_profit: Decimal

    start_price: float
    end_price: float
    trades: int
    start_balance: float
    sharpe: float | None

    profitable_trips: Decimal  # Percentage of round trips with profit > 0
    average_profit: Decimal
    max_profit: Decimal
    average_loss: Decimal
    max_loss: Decimal

    alpha: float

    model_config = {"frozen": True}

    @field_serializer(
        "max_drawdown",
        "yearly_profit",
        "relative_yearly_profit",
        "profitable_trips",
        "average_profit",
        "max_profit",
        "average_loss",
        "max_loss",
        when_used="json",
    )
    def _serialize_decimal(self, v: Decimal) -> str:
        """Serialize rounded values as fixed-point strings."""
        return str(v)

    def to_dict(self) -> dict[str, Any]:
        """Report keyed by wire names (startTime, relativeProfit, ...)."""
        data = self.model_dump(mode="json")
        return {_REPORT_WIRE_NAMES[key]: value for key, value in data.items()}
