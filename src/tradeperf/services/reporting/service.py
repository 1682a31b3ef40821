"""Performance analyzer service.

Consumes candles, portfolio updates and trades in arrival order, pairs
trades into round trips, maintains cumulative statistics and emits reports
to an output sink.
"""

from tradeperf.libraries.performance.calculators import (
    PriceWindowTracker,
    RoundTripLedger,
    RoundTripTracker,
    StatisticsEngine,
)
from tradeperf.libraries.performance.exceptions import AnalyzerFinalizedError
from tradeperf.libraries.performance.models import (
    Candle,
    PerformanceReport,
    PortfolioSnapshot,
    RoundTrip,
    RoundTripState,
    Trade,
    TradeAction,
)
from tradeperf.services.reporting.builder import ReportBuilder
from tradeperf.services.reporting.interface import IOutputSink
from tradeperf.services.reporting.sinks import create_sink
from tradeperf.system import AnalyzerConfig, LoggerFactory

logger = LoggerFactory.get_logger()


class PerformanceAnalyzer:
    """Performance analyzer for one strategy run.

    Owns every piece of mutable state (window, round-trip state machine,
    ledger, statistics), so independent analyzers never interfere.

    Attributes:
        config: Analyzer configuration
        sink: Destination of trade reports, round trips and the final report

    Example:
        >>> analyzer = PerformanceAnalyzer(AnalyzerConfig(risk_free_return=1.0))
        >>> analyzer.observe_portfolio(PortfolioSnapshot(balance=1000, currency=1000, asset=0))
        >>> analyzer.observe_candle(candle)
        >>> analyzer.on_trade(buy)
        >>> analyzer.on_trade(sell)
        >>> report = analyzer.finalize()
        >>> report.relative_profit
        10.0
    """

    def __init__(self, config: AnalyzerConfig | None = None, sink: IOutputSink | None = None) -> None:
        """Initialize analyzer.

        Args:
            config: Analyzer configuration (defaults if None)
            sink: Output sink (built from config.sink if None)
        """
        self.config = config if config is not None else AnalyzerConfig()
        self.sink = sink if sink is not None else create_sink(self.config)

        self._window = PriceWindowTracker()
        self._ledger = RoundTripLedger()
        self._tracker = RoundTripTracker(self._ledger)
        self._statistics = StatisticsEngine(self.config.risk_free_return)
        self._builder = ReportBuilder(
            window=self._window,
            ledger=self._ledger,
            statistics=self._statistics,
            currency=self.config.currency,
            asset=self.config.asset,
        )
        self._finalized = False

    def observe_candle(self, candle: Candle) -> None:
        """Record a market candle.

        Raises:
            AnalyzerFinalizedError: If the analyzer was already finalized
        """
        self._ensure_active("candle")
        self._window.observe_candle(candle)

    def observe_portfolio(self, snapshot: PortfolioSnapshot) -> None:
        """Record a portfolio update.

        The first update becomes the starting baseline; later ones only
        change the current portfolio.

        Raises:
            AnalyzerFinalizedError: If the analyzer was already finalized
        """
        self._ensure_active("portfolio")
        self._window.observe_portfolio(snapshot)

    def on_trade(self, trade: Trade) -> PerformanceReport | None:
        """Process an executed trade.

        Counts the trade, adopts the trade's portfolio as current, advances
        the round-trip state machine and emits the running report. A round
        trip closed by this trade is emitted before the trade report, so the
        running report of a closing sell already includes that trip. Older
        relays emitted the trade report first and counted the trip only from
        the next report on.

        A sell with no open position is an invalid pairing: it is logged and
        dropped without touching any state or reaching the sink. A trade
        arriving before the baseline portfolio and first candle raises
        without changing any state.

        Args:
            trade: Executed trade

        Returns:
            Running report after this trade, None if the trade was ignored

        Raises:
            AnalyzerFinalizedError: If the analyzer was already finalized
            MissingBaselineError: If no portfolio or candle was observed yet
        """
        self._ensure_active("trade")

        if trade.action is TradeAction.SELL and not self._tracker.can_close():
            logger.debug(
                "analyzer.sell_ignored",
                state=self._tracker.state.value,
                date=trade.date.isoformat(),
                price=trade.price,
            )
            return None

        self._builder.ensure_ready()
        self._builder.record_trade()
        self._window.observe_trade_portfolio(trade.portfolio)

        roundtrip = self._tracker.on_trade(trade)
        if roundtrip is not None:
            self._handle_roundtrip(roundtrip)

        report = self._builder.build()
        self.sink.handle_trade(trade, report)
        return report

    def finalize(self) -> PerformanceReport:
        """Build the final report and hand it to the sink.

        Returns:
            Final report

        Raises:
            AnalyzerFinalizedError: If called more than once
            MissingBaselineError: If no portfolio or candle was observed
        """
        self._ensure_active("finalize")

        report = self._builder.build(final=True)
        self._finalized = True
        self.sink.finalize(report)

        logger.info(
            "analyzer.finalized",
            trades=report.trades,
            roundtrips=len(self._ledger),
            relative_profit=report.relative_profit,
            max_drawdown=str(report.max_drawdown),
        )
        return report

    def _handle_roundtrip(self, roundtrip: RoundTrip) -> None:
        self._statistics.update_aggregates(roundtrip, self._ledger.roundtrips)

        logger.debug(
            "analyzer.roundtrip_closed",
            roundtrip_id=roundtrip.id,
            pnl=roundtrip.pnl,
            profit=roundtrip.profit,
        )
        self.sink.handle_roundtrip(roundtrip)

    def _ensure_active(self, operation: str) -> None:
        if self._finalized:
            raise AnalyzerFinalizedError(f"Analyzer already finalized; cannot process {operation}")

    @property
    def roundtrips(self) -> list[RoundTrip]:
        """Finalized round trips in id order."""
        return self._ledger.roundtrips

    @property
    def statistics(self) -> StatisticsEngine:
        """Cumulative round-trip statistics."""
        return self._statistics

    @property
    def state(self) -> RoundTripState:
        """Round-trip lifecycle state."""
        return self._tracker.state

    @property
    def trades(self) -> int:
        """Trades processed so far."""
        return self._builder.trades

    @property
    def is_finalized(self) -> bool:
        """True once finalize() has succeeded."""
        return self._finalized
