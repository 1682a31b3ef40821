"""Stateful performance calculators for incremental updates.

Calculators maintain state and update as events arrive in chronological
order. Used by PerformanceAnalyzer to track a strategy run.

Philosophy:
- Stateful: Maintain internal state between updates
- Order-dependent: Events must be fed in arrival order, one at a time
- Composable: One analyzer owns one instance of each calculator
- Testable: Clear state transitions and observable outputs

Usage:
    >>> from tradeperf.libraries.performance.calculators import RoundTripTracker
    >>>
    >>> tracker = RoundTripTracker()
    >>> tracker.on_trade(buy)      # FLAT -> OPEN, returns None
    >>> trip = tracker.on_trade(sell)  # OPEN -> CLOSED, returns RoundTrip
    >>> trip.profit
    10.0
"""

import math
from datetime import datetime

from tradeperf.libraries.performance.exceptions import DuplicateRoundTripError, InsufficientDataError
from tradeperf.libraries.performance.metrics import (
    calculate_average,
    calculate_excess_returns,
    calculate_max_drawdown,
    calculate_period_risk_free_return,
    calculate_sharpe_ratio,
    calculate_win_rate,
)
from tradeperf.libraries.performance.models import (
    Candle,
    PortfolioSnapshot,
    RoundTrip,
    RoundTripLeg,
    RoundTripState,
    Trade,
    TradeAction,
)


class PriceWindowTracker:
    """
    Tracks the analysis window and the portfolio baseline.

    The first candle fixes the window start and start price; every candle
    moves the window end. The first portfolio snapshot becomes the
    immutable starting baseline, later ones only replace the current view.
    """

    def __init__(self) -> None:
        """Initialize window tracker."""
        self._window_start: datetime | None = None
        self._window_end: datetime | None = None
        self._start_price = 0.0
        self._end_price = 0.0
        self._last_price: float | None = None
        self._start: PortfolioSnapshot | None = None
        self._current: PortfolioSnapshot | None = None

    def observe_candle(self, candle: Candle) -> None:
        """
        Record a candle.

        Args:
            candle: Latest candle
        """
        if self._window_start is None:
            self._window_start = candle.start
            self._start_price = candle.close

        self._window_end = candle.start
        self._end_price = candle.close
        self._last_price = candle.close

    def observe_portfolio(self, snapshot: PortfolioSnapshot) -> None:
        """
        Record a portfolio update.

        Only the first snapshot seeds the starting baseline.

        Args:
            snapshot: Portfolio state
        """
        if self._start is None:
            self._start = snapshot.model_copy()
        self._current = snapshot.model_copy()

    def observe_trade_portfolio(self, snapshot: PortfolioSnapshot) -> None:
        """Replace the current portfolio with the one reported by a trade."""
        self._current = snapshot.model_copy()

    def mark_to_market(self) -> float:
        """
        Current portfolio value at the last observed price.

        Returns:
            current.currency + last_price * current.asset
        """
        if self._current is None or self._last_price is None:
            raise ValueError("Mark-to-market needs a portfolio and at least one candle")
        return self._current.currency + self._last_price * self._current.asset

    @property
    def has_window(self) -> bool:
        """True once at least one candle was observed."""
        return self._window_start is not None

    @property
    def has_baseline(self) -> bool:
        """True once a starting portfolio was observed."""
        return self._start is not None

    @property
    def window_start(self) -> datetime | None:
        """Start time of the first candle."""
        return self._window_start

    @property
    def window_end(self) -> datetime | None:
        """Start time of the latest candle."""
        return self._window_end

    @property
    def start_price(self) -> float:
        """Close of the first candle."""
        return self._start_price

    @property
    def end_price(self) -> float:
        """Close of the latest candle."""
        return self._end_price

    @property
    def last_price(self) -> float | None:
        """Latest observed close, None before the first candle."""
        return self._last_price

    @property
    def start(self) -> PortfolioSnapshot | None:
        """Starting portfolio baseline."""
        return self._start

    @property
    def current(self) -> PortfolioSnapshot | None:
        """Latest portfolio state."""
        return self._current


class RoundTripLedger:
    """
    Append-only sequence of finalized round trips addressed by id.

    Ids must arrive contiguous from 0; anything else means a round trip
    would be overwritten or skipped.
    """

    def __init__(self) -> None:
        """Initialize empty ledger."""
        self._roundtrips: list[RoundTrip] = []

    def append(self, roundtrip: RoundTrip) -> None:
        """
        Store a finalized round trip.

        Raises:
            DuplicateRoundTripError: If roundtrip.id is not the next index
        """
        expected = len(self._roundtrips)
        if roundtrip.id != expected:
            raise DuplicateRoundTripError(f"Round trip id {roundtrip.id} does not match next ledger index {expected}")
        self._roundtrips.append(roundtrip)

    def last(self) -> RoundTrip | None:
        """Most recently finalized round trip."""
        if not self._roundtrips:
            return None
        return self._roundtrips[-1]

    @property
    def roundtrips(self) -> list[RoundTrip]:
        """All round trips in id order."""
        return self._roundtrips.copy()

    def __getitem__(self, roundtrip_id: int) -> RoundTrip:
        return self._roundtrips[roundtrip_id]

    def __len__(self) -> int:
        """Number of finalized round trips."""
        return len(self._roundtrips)


class RoundTripTracker:
    """
    Pairs buy and sell trades into round trips.

    Transitions:
        FLAT   + buy  -> OPEN    (record entry)
        FLAT   + sell -> FLAT    (ignored, nothing to close)
        OPEN   + buy  -> OPEN    (entry overwritten)
        OPEN   + sell -> CLOSED  (record exit, finalize round trip)
        CLOSED + buy  -> OPEN    (next id, exit cleared, new entry)
        CLOSED + sell -> CLOSED  (ignored, nothing to close)

    A buy while OPEN replaces the entry instead of being rejected, so
    pyramiding strategies that buy repeatedly still produce one round trip
    measured from the latest entry.
    """

    def __init__(self, ledger: RoundTripLedger | None = None) -> None:
        """
        Initialize round-trip tracker.

        Args:
            ledger: Ledger that receives finalized round trips (new one if None)
        """
        self._ledger = ledger if ledger is not None else RoundTripLedger()
        self._state = RoundTripState.FLAT
        self._id = 0
        self._entry: RoundTripLeg | None = None
        self._exit: RoundTripLeg | None = None

    def on_trade(self, trade: Trade) -> RoundTrip | None:
        """
        Advance the state machine with a trade.

        Args:
            trade: Executed trade

        Returns:
            The finalized RoundTrip if this trade closed one, else None
        """
        if trade.action is TradeAction.BUY:
            self._open(trade)
            return None

        entry = self._entry
        if self._state is not RoundTripState.OPEN or entry is None:
            return None

        exit_ = RoundTripLeg(
            date=trade.date,
            price=trade.price,
            total=trade.portfolio.currency + trade.portfolio.asset * trade.price,
        )
        self._exit = exit_
        self._state = RoundTripState.CLOSED
        return self._finalize(entry, exit_)

    def can_close(self) -> bool:
        """True if a sell would close a round trip."""
        return self._state is RoundTripState.OPEN

    def _open(self, trade: Trade) -> None:
        if self._state is RoundTripState.CLOSED:
            self._id += 1
            self._exit = None

        self._entry = RoundTripLeg(date=trade.date, price=trade.price, total=trade.portfolio.balance)
        self._state = RoundTripState.OPEN

    def _finalize(self, entry: RoundTripLeg, exit_: RoundTripLeg) -> RoundTrip:
        pnl = exit_.total - entry.total
        profit = (100 * exit_.total / entry.total) - 100 if entry.total != 0 else 0.0

        roundtrip = RoundTrip(
            id=self._id,
            entry_at=entry.date,
            entry_price=entry.price,
            entry_balance=entry.total,
            exit_at=exit_.date,
            exit_price=exit_.price,
            exit_balance=exit_.total,
            duration=exit_.date - entry.date,
            pnl=pnl,
            profit=profit,
        )

        self._ledger.append(roundtrip)
        return roundtrip

    @property
    def state(self) -> RoundTripState:
        """Current lifecycle state."""
        return self._state

    @property
    def current_id(self) -> int:
        """Id of the round trip being built."""
        return self._id

    @property
    def entry(self) -> RoundTripLeg | None:
        """Recorded entry (kept after close until the next buy)."""
        return self._entry

    @property
    def exit(self) -> RoundTripLeg | None:
        """Recorded exit (cleared when the next round trip opens)."""
        return self._exit

    @property
    def ledger(self) -> RoundTripLedger:
        """Ledger of finalized round trips."""
        return self._ledger


class SharpeCalculator:
    """
    Sharpe ratio over all round trips, recomputed from scratch on update.

    O(n) per round trip; results depend only on the ordered round trips,
    never on how many times the value was refreshed.
    """

    def __init__(self, risk_free_return: float) -> None:
        """
        Args:
            risk_free_return: Annual risk-free rate in percent
        """
        self._risk_free_return = risk_free_return
        self._value: float | None = None

    def update(self, roundtrips: list[RoundTrip]) -> float | None:
        """
        Recompute Sharpe for the given round trips.

        Returns:
            Sharpe ratio, or None with fewer than two round trips
        """
        try:
            self._value = calculate_sharpe_ratio(calculate_excess_returns(roundtrips, self._risk_free_return))
        except InsufficientDataError:
            self._value = None
        return self._value

    @property
    def value(self) -> float | None:
        """Cached Sharpe ratio (None until two round trips exist)."""
        return self._value


class IncrementalSharpeCalculator:
    """
    Sharpe ratio maintained with running mean and variance (Welford).

    O(1) per round trip. Agrees with SharpeCalculator up to float rounding.
    """

    def __init__(self, risk_free_return: float) -> None:
        """
        Args:
            risk_free_return: Annual risk-free rate in percent
        """
        self._risk_free_return = risk_free_return
        self._count = 0
        self._mean = 0.0
        self._m2 = 0.0

    def add(self, roundtrip: RoundTrip) -> float | None:
        """
        Fold one more round trip into the running statistics.

        Returns:
            Updated Sharpe ratio, or None with fewer than two round trips
        """
        excess = roundtrip.profit - calculate_period_risk_free_return(self._risk_free_return, roundtrip.duration_hours)

        self._count += 1
        delta = excess - self._mean
        self._mean += delta / self._count
        self._m2 += delta * (excess - self._mean)

        return self.value

    @property
    def value(self) -> float | None:
        """Current Sharpe ratio (population stdev)."""
        if self._count < 2:
            return None

        stdev = math.sqrt(self._m2 / self._count)
        if stdev == 0:
            return 0.0
        return self._mean / stdev

    def __len__(self) -> int:
        """Number of round trips folded in."""
        return self._count


class StatisticsEngine:
    """
    Cumulative round-trip statistics.

    Maintains running counts and extrema for win rate, average and maximum
    profit/loss, the starting peak, the final max drawdown and the cached
    Sharpe ratio.
    """

    def __init__(self, risk_free_return: float = 0.0) -> None:
        """
        Initialize statistics engine.

        Args:
            risk_free_return: Annual risk-free rate in percent for Sharpe
        """
        self._total_trips = 0
        self._profitable_trips = 0
        self._total_profit = 0.0
        self._max_profit = 0.0
        self._total_loss = 0.0
        self._max_loss = 0.0
        self._peak = 0.0
        self._max_drawdown = 0.0
        self._sharpe = SharpeCalculator(risk_free_return)

    def update_aggregates(self, roundtrip: RoundTrip, roundtrips: list[RoundTrip]) -> None:
        """
        Fold a finalized round trip into the aggregates.

        Args:
            roundtrip: Newly finalized round trip
            roundtrips: Every finalized round trip so far (including roundtrip),
                used to refresh the Sharpe cache
        """
        self._total_trips += 1

        if roundtrip.profit > 0:
            self._profitable_trips += 1
            self._total_profit += roundtrip.profit
            if roundtrip.profit > self._max_profit:
                self._max_profit = roundtrip.profit
        else:
            self._total_loss += roundtrip.profit
            if roundtrip.profit < self._max_loss:
                self._max_loss = roundtrip.profit

        # First round trip's entry balance is the baseline peak
        if self._peak == 0:
            self._peak = roundtrip.entry_balance

        self._sharpe.update(roundtrips)

    def recompute_drawdown(self, roundtrips: list[RoundTrip], start_balance: float) -> float:
        """
        Recompute max drawdown over all round trips.

        Args:
            roundtrips: Finalized round trips in id order
            start_balance: Starting portfolio balance (initial running peak)

        Returns:
            Max drawdown percentage (<= 0)
        """
        self._max_drawdown = min(self._max_drawdown, calculate_max_drawdown(roundtrips, start_balance))
        return self._max_drawdown

    @property
    def total_trips(self) -> int:
        """Number of finalized round trips."""
        return self._total_trips

    @property
    def profitable_trips(self) -> int:
        """Round trips with profit > 0."""
        return self._profitable_trips

    @property
    def losing_trips(self) -> int:
        """Round trips with profit <= 0."""
        return self._total_trips - self._profitable_trips

    @property
    def total_profit(self) -> float:
        """Sum of profit (%) over winning round trips."""
        return self._total_profit

    @property
    def total_loss(self) -> float:
        """Sum of profit (%) over losing round trips (<= 0)."""
        return self._total_loss

    @property
    def max_profit(self) -> float:
        """Best round-trip profit (%)."""
        return self._max_profit

    @property
    def max_loss(self) -> float:
        """Worst round-trip profit (%), <= 0."""
        return self._max_loss

    @property
    def peak(self) -> float:
        """Entry balance of the first round trip (0 before any)."""
        return self._peak

    @property
    def max_drawdown(self) -> float:
        """Max drawdown from the last recompute (<= 0)."""
        return self._max_drawdown

    @property
    def sharpe(self) -> float | None:
        """Cached Sharpe ratio, None with fewer than two round trips."""
        return self._sharpe.value

    @property
    def win_rate(self) -> float:
        """Percentage of profitable round trips."""
        return calculate_win_rate(self._total_trips, self._profitable_trips)

    @property
    def average_profit(self) -> float:
        """Average profit (%) of winning round trips."""
        return calculate_average(self._total_profit, self._profitable_trips)

    @property
    def average_loss(self) -> float:
        """Average profit (%) of losing round trips."""
        return calculate_average(self._total_loss, self.losing_trips)
