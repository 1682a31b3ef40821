"""Output sinks for analyzer emissions.

Two implementations of IOutputSink:

- LogSink: structured log lines (colored event display on the console,
  JSON in files), optionally a Rich table for the final report
- RelaySink: pydantic event envelopes handed to a send callable, e.g. the
  send method of a multiprocessing Connection owned by a parent process

create_sink() picks the implementation from AnalyzerConfig.sink.
"""

from typing import Any, Callable

from rich.console import Console

from tradeperf.events.events import FinalReportEvent, RoundTripEvent, TradeReportEvent
from tradeperf.libraries.performance.exceptions import ConfigurationError
from tradeperf.libraries.performance.metrics import humanize_duration
from tradeperf.libraries.performance.models import PerformanceReport, RoundTrip, Trade
from tradeperf.services.reporting.formatters import display_performance_report
from tradeperf.services.reporting.interface import IOutputSink
from tradeperf.system.config import AnalyzerConfig
from tradeperf.system.log_system import EVENT_DISPLAY, LoggerFactory

RelaySend = Callable[[dict[str, Any]], None]


class LogSink:
    """
    Writes analyzer emissions to the log.

    Trades and round trips are logged as event display lines under the
    tradeperf.events.analyzer logger; the final report is logged as well
    and, with display_report, rendered as a Rich table.
    """

    def __init__(self, display_report: bool = False, console: Console | None = None) -> None:
        """
        Args:
            display_report: Render the final report with Rich
            console: Console for the report table (new one if None)
        """
        self._logger = LoggerFactory.get_logger("tradeperf.events.analyzer")
        self._display_report = display_report
        self._console = console

    def handle_trade(self, trade: Trade, report: PerformanceReport) -> None:
        """Log the trade with running balance and return."""
        self._logger.info(
            EVENT_DISPLAY,
            event_type="trade",
            timestamp=trade.date.isoformat(),
            action=trade.action.value,
            price=trade.price,
            balance=report.balance,
            relative_profit=report.relative_profit,
        )

    def handle_roundtrip(self, roundtrip: RoundTrip) -> None:
        """Log the finalized round trip."""
        self._logger.info(
            EVENT_DISPLAY,
            event_type="roundtrip",
            roundtrip_id=roundtrip.id,
            exit_at=roundtrip.exit_at.isoformat(),
            entry_price=roundtrip.entry_price,
            exit_price=roundtrip.exit_price,
            pnl=roundtrip.pnl,
            profit=roundtrip.profit,
            duration=humanize_duration(roundtrip.duration),
        )

    def finalize(self, report: PerformanceReport) -> None:
        """Log the final report (and display it if configured)."""
        self._logger.info(
            EVENT_DISPLAY,
            event_type="report",
            balance=report.balance,
            relative_profit=report.relative_profit,
            market=report.market,
            sharpe=report.sharpe,
        )
        if self._display_report:
            display_performance_report(report, console=self._console)


class RelaySink:
    """
    Forwards analyzer emissions to another process.

    Each emission becomes an event envelope serialized with
    model_dump(mode="json") and passed to send. All events of one run
    share a correlation_id.
    """

    def __init__(self, send: RelaySend, correlation_id: str | None = None) -> None:
        """
        Args:
            send: Callable receiving one JSON-compatible dict per emission
            correlation_id: Run identifier stamped on every event
        """
        self._send = send
        self._correlation_id = correlation_id
        self._logger = LoggerFactory.get_logger()

    def handle_trade(self, trade: Trade, report: PerformanceReport) -> None:
        """Relay the trade with its running report."""
        self._send(TradeReportEvent(trade=trade, report=report, correlation_id=self._correlation_id).model_dump(mode="json"))

    def handle_roundtrip(self, roundtrip: RoundTrip) -> None:
        """Relay the finalized round trip."""
        self._send(RoundTripEvent(roundtrip=roundtrip, correlation_id=self._correlation_id).model_dump(mode="json"))

    def finalize(self, report: PerformanceReport) -> None:
        """Relay the final report."""
        self._send(FinalReportEvent(report=report, correlation_id=self._correlation_id).model_dump(mode="json"))
        self._logger.debug("analyzer.relay_finalized", correlation_id=self._correlation_id)


def create_sink(
    config: AnalyzerConfig,
    send: RelaySend | None = None,
    correlation_id: str | None = None,
    console: Console | None = None,
) -> IOutputSink:
    """
    Build the output sink selected by configuration.

    Args:
        config: Analyzer configuration (config.sink selects the variant)
        send: Relay callable, required for the relay sink
        correlation_id: Run identifier for relayed events
        console: Console for the log sink's report table

    Returns:
        LogSink or RelaySink

    Raises:
        ConfigurationError: If the relay sink is selected without a send callable
    """
    if config.sink == "relay":
        if send is None:
            raise ConfigurationError("sink 'relay' requires a send callable")
        return RelaySink(send, correlation_id=correlation_id)

    return LogSink(display_report=config.display_report, console=console)
