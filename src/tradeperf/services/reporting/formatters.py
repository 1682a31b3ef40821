"""Rich console formatters for performance reports.

Provides terminal display of the final performance report with tables,
colors, and formatting using the Rich library.
"""

from decimal import Decimal

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from tradeperf.libraries.performance.models import PerformanceReport


def _format_pct(value: float | Decimal, precision: int = 2) -> str:
    """Format percentage."""
    return f"{float(value):.{precision}f}%"


def _format_amount(value: float | Decimal, currency: str, precision: int = 2) -> str:
    """Format an amount in the quote currency."""
    return f"{float(value):,.{precision}f} {currency}"


def _get_color(value: float | Decimal) -> str:
    """Get color based on positive/negative value."""
    if value > 0:
        return "green"
    elif value < 0:
        return "red"
    return "white"


def _create_summary_table(report: PerformanceReport) -> Table:
    """Create summary table: window, balances and returns."""
    table = Table(title="📊 Performance Summary", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Market", f"{report.asset}/{report.currency}")
    table.add_row("Period", f"{report.start_time} to {report.end_time}")
    table.add_row("Timespan", report.timespan)
    table.add_row("", "")  # Spacer

    table.add_row("Start Balance", _format_amount(report.start_balance, report.currency))
    table.add_row("Final Balance", _format_amount(report.balance, report.currency))

    profit_color = _get_color(report.profit)
    table.add_row(
        "Profit",
        f"[{profit_color}]{_format_amount(report.profit, report.currency)} "
        f"({_format_pct(report.relative_profit)})[/{profit_color}]",
    )

    yearly_color = _get_color(report.relative_yearly_profit)
    table.add_row(
        "Yearly Profit",
        f"[{yearly_color}]{_format_amount(report.yearly_profit, report.currency)} "
        f"({_format_pct(report.relative_yearly_profit)})[/{yearly_color}]",
    )

    return table


def _create_market_table(report: PerformanceReport) -> Table:
    """Create benchmark table: buy-and-hold market and alpha."""
    table = Table(title="🏦 Market Benchmark", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Start Price", f"{report.start_price:,.8g}")
    table.add_row("End Price", f"{report.end_price:,.8g}")

    market_color = _get_color(report.market)
    table.add_row("Market (Buy & Hold)", f"[{market_color}]{_format_pct(report.market)}[/{market_color}]")

    alpha_color = _get_color(report.alpha)
    table.add_row("Alpha", f"[{alpha_color}]{float(report.alpha):,.2f}[/{alpha_color}]")

    return table


def _create_risk_table(report: PerformanceReport) -> Table:
    """Create risk and risk-adjusted return table."""
    table = Table(title="⚠️  Risk Metrics", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Max Drawdown", f"[red]{_format_pct(report.max_drawdown, 1)}[/red]")

    if report.sharpe is not None:
        sharpe_color = "green" if report.sharpe > 1.0 else "yellow" if report.sharpe > 0 else "red"
        table.add_row("Sharpe Ratio", f"[{sharpe_color}]{report.sharpe:.2f}[/{sharpe_color}]")
    else:
        table.add_row("Sharpe Ratio", "[dim]N/A (fewer than 2 round trips)[/dim]")

    return table


def _create_trade_stats_table(report: PerformanceReport) -> Table:
    """Create trade statistics table."""
    table = Table(title="💼 Trade Statistics", show_header=False, box=None, padding=(0, 2))

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Trades", f"{report.trades:,}")

    win_color = (
        "green"
        if report.profitable_trips > Decimal("50")
        else "yellow"
        if report.profitable_trips > Decimal("40")
        else "red"
    )
    table.add_row("Profitable Trips", f"[{win_color}]{_format_pct(report.profitable_trips, 1)}[/{win_color}]")
    table.add_row("", "")  # Spacer
    table.add_row("Avg Profit", f"[green]{_format_pct(report.average_profit, 1)}[/green]")
    table.add_row("Max Profit", f"[green]{_format_pct(report.max_profit, 1)}[/green]")
    table.add_row("Avg Loss", f"[red]{_format_pct(report.average_loss, 1)}[/red]")
    table.add_row("Max Loss", f"[red]{_format_pct(report.max_loss, 1)}[/red]")

    return table


def display_performance_report(report: PerformanceReport, console: Console | None = None) -> None:
    """
    Display a performance report in Rich-formatted console output.

    Args:
        report: Final (or running) performance report
        console: Rich Console instance (creates new if None)

    Example:
        >>> report = analyzer.finalize()
        >>> display_performance_report(report)
    """
    if console is None:
        console = Console()

    console.print()

    console.print(_create_summary_table(report))
    console.print()

    console.print(_create_market_table(report))
    console.print()

    console.print(_create_risk_table(report))
    console.print()

    if report.trades > 0:
        console.print(_create_trade_stats_table(report))
        console.print()

    summary_text = Text()
    summary_text.append("🏁 Analysis Complete: ", style="bold")
    summary_text.append(
        f"{_format_amount(report.start_balance, report.currency)} → {_format_amount(report.balance, report.currency)}",
        style="bold cyan",
    )
    summary_text.append(f" ({_format_pct(report.relative_profit)})", style=f"bold {_get_color(report.relative_profit)}")

    console.print(Panel(summary_text, border_style="green" if report.relative_profit > 0 else "red"))
    console.print()
