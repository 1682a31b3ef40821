"""Analyze command: replay a recorded event stream through the analyzer."""

import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterator, Optional

import click
from pydantic import ValidationError
from rich.console import Console

from tradeperf.libraries.performance.exceptions import PerformanceAnalysisError
from tradeperf.libraries.performance.models import Candle, PortfolioSnapshot, Trade
from tradeperf.services.reporting import PerformanceAnalyzer, create_sink, display_performance_report
from tradeperf.system import LoggerFactory, reload_system_config

console = Console()

EventRecord = Candle | PortfolioSnapshot | Trade

_EVENT_MODELS: dict[str, type[EventRecord]] = {
    "candle": Candle,
    "portfolio": PortfolioSnapshot,
    "trade": Trade,
}


def iter_events(path: Path) -> Iterator[EventRecord]:
    """
    Read a JSON-lines event file.

    Each non-blank line is an object with a "type" of candle, portfolio or
    trade; the remaining keys are the record's fields.

    Args:
        path: Event file

    Yields:
        Candle, PortfolioSnapshot or Trade in file order

    Raises:
        click.ClickException: On malformed JSON, unknown type or invalid fields
    """
    with open(path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue

            try:
                payload: dict[str, Any] = json.loads(line)
            except json.JSONDecodeError as e:
                raise click.ClickException(f"{path}:{lineno}: invalid JSON ({e.msg})") from e

            event_type = payload.pop("type", None)
            model = _EVENT_MODELS.get(str(event_type))
            if model is None:
                raise click.ClickException(
                    f"{path}:{lineno}: unknown event type {event_type!r} (expected one of {sorted(_EVENT_MODELS)})"
                )

            try:
                yield model.model_validate(payload)
            except ValidationError as e:
                raise click.ClickException(f"{path}:{lineno}: invalid {event_type} event\n{e}") from e


def _dispatch(analyzer: PerformanceAnalyzer, record: EventRecord) -> None:
    if isinstance(record, Candle):
        analyzer.observe_candle(record)
    elif isinstance(record, PortfolioSnapshot):
        analyzer.observe_portfolio(record)
    else:
        analyzer.on_trade(record)


@click.command("analyze")
@click.option(
    "--file",
    "-f",
    "events_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Path to event file (JSON lines with candle/portfolio/trade records)",
)
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to system configuration (YAML). Defaults to config/system.yaml if present",
)
@click.option(
    "--risk-free-return",
    type=float,
    help="Override annual risk-free rate in percent",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Set logging level (DEBUG shows ignored sells and closed round trips)",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Print the final report as JSON instead of tables",
)
def analyze_command(
    events_file: Path,
    config_file: Optional[Path],
    risk_free_return: Optional[float],
    log_level: Optional[str],
    json_output: bool,
):
    """
    Analyze a recorded run from an event file.

    Replays candles, portfolio updates and trades in file order, then
    prints the final performance report.

    \b
    Examples:
        # Table output with config defaults
        tradeperf analyze --file runs/btc.jsonl

        # Custom risk-free rate, JSON report
        tradeperf analyze -f runs/btc.jsonl --risk-free-return 2.5 --json

        # Debug mode (show every round trip and ignored sell)
        tradeperf analyze -f runs/btc.jsonl -l debug

    \b
    Sinks:
        - log: trades and round trips are logged as they happen
        - relay: every event envelope is written to stdout as one JSON line
    """
    try:
        system_config = reload_system_config(config_file)

        if log_level:
            system_config.logging.level = log_level.upper()
        elif json_output:
            # Keep stdout parseable
            system_config.logging.level = "WARNING"
        LoggerFactory.configure(system_config.logging.to_logger_config())

        analyzer_config = system_config.analyzer
        if risk_free_return is not None:
            analyzer_config = replace(analyzer_config, risk_free_return=risk_free_return)

        sink = create_sink(
            replace(analyzer_config, display_report=False),
            send=lambda payload: click.echo(json.dumps(payload)),
            console=console,
        )
        analyzer = PerformanceAnalyzer(analyzer_config, sink=sink)

        for record in iter_events(events_file):
            _dispatch(analyzer, record)

        report = analyzer.finalize()

        if json_output:
            # Relay envelopes are already on stdout as JSON lines
            indent = None if analyzer_config.sink == "relay" else 2
            click.echo(json.dumps(report.to_dict(), indent=indent))
        elif analyzer_config.sink == "log":
            display_performance_report(report, console=console)

    except PerformanceAnalysisError as e:
        console.print(f"[bold red]✗ Analysis failed:[/bold red] {e}")
        sys.exit(1)

