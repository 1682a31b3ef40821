"""Report assembly.

ReportBuilder turns the analyzer's calculator state into an immutable
PerformanceReport. Running reports value the portfolio at the last candle
close; the final report uses the last round trip's exit balance and
recomputes max drawdown.
"""

from datetime import datetime, timezone

from tradeperf.libraries.performance.calculators import PriceWindowTracker, RoundTripLedger, StatisticsEngine
from tradeperf.libraries.performance.exceptions import MissingBaselineError
from tradeperf.libraries.performance.metrics import (
    calculate_relative_change,
    duration_in_years,
    humanize_duration,
    round_fixed,
)
from tradeperf.libraries.performance.models import PerformanceReport

REPORT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
PERCENT_PLACES = 1
YEARLY_PLACES = 8


def format_report_time(value: datetime) -> str:
    """Format a timestamp as YYYY-MM-DD HH:MM:SS in UTC."""
    return value.astimezone(timezone.utc).strftime(REPORT_TIME_FORMAT)


class ReportBuilder:
    """
    Builds point-in-time and final performance reports.

    Reads the window tracker, the round-trip ledger and the statistics
    engine; the only state it changes is the engine's max drawdown, and
    only for the final report.
    """

    def __init__(
        self,
        window: PriceWindowTracker,
        ledger: RoundTripLedger,
        statistics: StatisticsEngine,
        currency: str,
        asset: str,
    ) -> None:
        """
        Args:
            window: Candle window and portfolio baseline
            ledger: Finalized round trips
            statistics: Round-trip aggregates and Sharpe cache
            currency: Quote currency label
            asset: Asset label
        """
        self._window = window
        self._ledger = ledger
        self._statistics = statistics
        self._currency = currency
        self._asset = asset
        self._trades = 0

    def record_trade(self) -> None:
        """Count one more processed trade."""
        self._trades += 1

    def ensure_ready(self) -> None:
        """
        Check that a report can be built.

        Raises:
            MissingBaselineError: If no portfolio or no candle was observed yet
        """
        if not self._window.has_baseline:
            raise MissingBaselineError("No portfolio snapshot observed; cannot compute balance or profit")
        if not self._window.has_window:
            raise MissingBaselineError("No candle observed; the analysis window is empty")

    @property
    def trades(self) -> int:
        """Trades processed so far."""
        return self._trades

    def build(self, final: bool = False) -> PerformanceReport:
        """
        Assemble a report snapshot.

        Args:
            final: True for the end-of-run report

        Returns:
            PerformanceReport

        Raises:
            MissingBaselineError: If no portfolio or no candle was observed yet
        """
        window = self._window
        start = window.start
        if start is None or window.window_start is None or window.window_end is None:
            self.ensure_ready()
            raise MissingBaselineError("Analysis window is incomplete")

        if final:
            balance = self._final_balance(start.balance)
            self._statistics.recompute_drawdown(self._ledger.roundtrips, start.balance)
        else:
            balance = window.mark_to_market()

        profit = balance - start.balance
        relative_profit = calculate_relative_change(start.balance, balance)

        timespan = window.window_end - window.window_start
        years = duration_in_years(timespan)
        if years > 0:
            yearly_profit = profit / years
            relative_yearly_profit = relative_profit / years
        else:
            yearly_profit = 0.0
            relative_yearly_profit = 0.0

        market = calculate_relative_change(window.start_price, window.end_price)
        stats = self._statistics

        return PerformanceReport(
            currency=self._currency,
            asset=self._asset,
            start_time=format_report_time(window.window_start),
            end_time=format_report_time(window.window_end),
            timespan=humanize_duration(timespan),
            market=market,
            balance=balance,
            profit=profit,
            relative_profit=relative_profit,
            max_drawdown=round_fixed(stats.max_drawdown, PERCENT_PLACES),
            yearly_profit=round_fixed(yearly_profit, YEARLY_PLACES),
            relative_yearly_profit=round_fixed(relative_yearly_profit, YEARLY_PLACES),
            start_price=window.start_price,
            end_price=window.end_price,
            trades=self._trades,
            start_balance=start.balance,
            sharpe=stats.sharpe,
            profitable_trips=round_fixed(stats.win_rate, PERCENT_PLACES),
            average_profit=round_fixed(stats.average_profit, PERCENT_PLACES),
            max_profit=round_fixed(stats.max_profit, PERCENT_PLACES),
            average_loss=round_fixed(stats.average_loss, PERCENT_PLACES),
            max_loss=round_fixed(stats.max_loss, PERCENT_PLACES),
            # Absolute profit minus market percent
            alpha=profit - market,
        )

    def _final_balance(self, start_balance: float) -> float:
        last = self._ledger.last()
        if last is None:
            return start_balance
        return last.exit_balance
