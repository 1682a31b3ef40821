"""
Logging for tradeperf.

structlog is routed through the standard library so that one set of
handlers serves both: a console handler on stdout (colored lines or JSON)
and an optional JSON file handler. Analyzer emissions logged under
EVENT_LOGGER_PREFIX with the EVENT_DISPLAY event name are rendered as
compact colored event lines, grouped by market timestamp.
"""

import inspect
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Literal

import structlog
from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
TimestampFormat = Literal["iso", "compact", "time", "short"]

# Logger-name prefix and event name of analyzer event display lines
EVENT_LOGGER_PREFIX = "tradeperf.events."
EVENT_DISPLAY = "event.display"

DEFAULT_LOG_FILE = Path("logs/tradeperf.log")

# strftime patterns; "{ms}" is replaced with hundredths of a second
_TIMESTAMP_PATTERNS: dict[str, str] = {
    "compact": "%y%m%d-%H%M%S.{ms}",
    "time": "%H:%M:%S.{ms}",
    "short": "%m%dT%H%M%S",
}


class LoggingConfig(BaseModel):
    """Runtime logging settings consumed by LoggerFactory.

    Levels as used by the analyzer:
    - INFO: analyzer finalized, event display lines (trades, round trips, report)
    - DEBUG: ignored sells, closed round trips, relay finalization
    - WARNING: problems only; `tradeperf analyze --json` runs at this level

    Console timestamps:
    - "iso": 2024-01-01T10:00:00.288824+00:00
    - "compact": 240101-100000.28 (default)
    - "time": 10:00:00.28
    - "short": 0101T100000
    """

    level: LogLevel = Field(default="INFO", description="Console log level")
    format: Literal["console", "json"] = Field(default="console", description="Console renderer")
    timestamp_format: TimestampFormat = Field(default="compact", description="Console timestamp style")
    enable_file: bool = Field(default=False, description="Also write JSON lines to file_path")
    file_path: Path | None = Field(default=None, description=f"Log file (defaults to {DEFAULT_LOG_FILE})")
    file_level: LogLevel = Field(default="WARNING", description="File log level")
    file_rotation: bool = Field(default=True, description="Rotate the log file by size")
    max_file_size_mb: int = Field(default=10, description="Rotation threshold in MB")
    backup_count: int = Field(default=3, description="Rotated files kept")
    enable_event_display: bool = Field(default=True, description="Render analyzer event lines on the console")


class LoggerFactory:
    """
    Process-wide structlog setup.

    configure() installs the handlers once; get_logger() hands out loggers
    named after the calling module and configures defaults on first use.

    Example:
        LoggerFactory.configure(LoggingConfig(level="DEBUG"))

        logger = LoggerFactory.get_logger()
        logger.debug("analyzer.roundtrip_closed", roundtrip_id=3, profit=2.5)
    """

    _config: LoggingConfig | None = None
    _configured: bool = False

    @classmethod
    def configure(cls, config: LoggingConfig | None = None) -> None:
        """
        Install handlers and the structlog processor chain.

        Args:
            config: Logging settings (defaults if None)
        """
        config = config or LoggingConfig()
        if config.enable_file and config.file_path is None:
            config.file_path = DEFAULT_LOG_FILE
        cls._config = config

        pre_chain = cls._build_common_processors(config.timestamp_format)

        handlers = [cls._console_handler(config, pre_chain)]
        levels = [config.level]
        if config.enable_file:
            handlers.append(cls._configure_file_logging(config, pre_chain))
            levels.append(config.file_level)

        # Root must pass everything either handler wants
        root_level = min(getattr(logging, level) for level in levels)
        logging.basicConfig(level=root_level, handlers=handlers, force=True)

        structlog.configure(
            processors=[
                *pre_chain,
                *cls._exception_processors(config),
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        cls._configured = True

    @classmethod
    def _console_handler(cls, config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        renderer: Any
        if config.format == "console":
            renderer = cls._custom_console_renderer()
        else:
            renderer = structlog.processors.JSONRenderer()

        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setLevel(getattr(logging, config.level))
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))
        return handler

    @staticmethod
    def _exception_processors(config: LoggingConfig) -> list[Any]:
        if config.format == "json":
            return [structlog.processors.format_exc_info]
        return [
            structlog.dev.set_exc_info,
            structlog.processors.ExceptionRenderer(structlog.dev.plain_traceback),  # type: ignore[arg-type]
        ]

    @classmethod
    def _build_common_processors(cls, timestamp_format: str) -> list[Any]:
        """Processors run for structlog and stdlib records alike, before rendering."""
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            cls._get_timestamper(timestamp_format),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.CallsiteParameterAdder(
                [structlog.processors.CallsiteParameter.FILENAME, structlog.processors.CallsiteParameter.LINENO]
            ),
        ]

    @staticmethod
    def _get_timestamper(fmt: str) -> Any:
        """Timestamp processor writing 'log_timestamp'.

        Event fields already use 'timestamp' for market time.
        """
        pattern = _TIMESTAMP_PATTERNS.get(fmt)

        def add_log_timestamp(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
            now = datetime.now(timezone.utc)
            if pattern is None:
                event_dict["log_timestamp"] = now.isoformat()
            else:
                event_dict["log_timestamp"] = now.strftime(pattern.format(ms=f"{now.microsecond // 10000:02d}"))
            return event_dict

        return add_log_timestamp

    @staticmethod
    def _custom_console_renderer() -> Callable[[Any, str, dict[str, Any]], str]:
        """Console renderer: event display lines plus one-line system logs."""

        # Per event_type counts, plus "last_timestamp" for grouping
        event_counters: dict[str, Any] = {}

        config = LoggerFactory.get_config()

        def renderer(logger: Any, name: str, event_dict: dict[str, Any]) -> str:
            """Render an event display line, or a system log with its source location."""
            logger_name = event_dict.pop("logger", "")
            event = event_dict.pop("event", "")
            timestamp = event_dict.pop("log_timestamp", "")
            level = event_dict.pop("level", "info").upper()
            filename = event_dict.pop("filename", "")
            lineno = event_dict.pop("lineno", "")

            if logger_name.startswith(EVENT_LOGGER_PREFIX) and event == EVENT_DISPLAY:
                if not config.enable_event_display:
                    raise structlog.DropEvent
                return LoggerFactory._format_event_rich(event_dict, event_counters)

            location = f"{Path(filename).stem}:{lineno}" if filename and lineno else ""
            return _SystemLogFormatters.format_system_log(event, event_dict, level, timestamp, location)

        return renderer

    @staticmethod
    def _format_event_rich(event_dict: dict[str, Any], counters: dict[str, Any]) -> str:
        """
        Render one analyzer event line.

        A bold market-timestamp header precedes the first event of each
        timestamp; later events at the same timestamp are listed under it.
        """
        event_type = event_dict.get("event_type", "unknown")
        counters[event_type] = counters.get(event_type, 0) + 1

        lines = []
        market_time = event_dict.get("timestamp") or event_dict.get("exit_at")
        header = str(market_time)[:19] if market_time else None
        if header and header != counters.get("last_timestamp"):
            if counters.get("last_timestamp") is not None:
                lines.append("")
            lines.append(f"{_Ansi.BOLD}{_Ansi.CYAN}{header}{_Ansi.RESET}")
            counters["last_timestamp"] = header

        formatter = _EVENT_FORMATTERS.get(event_type)
        if formatter is None:
            lines.append(f"{_Ansi.DIM}• {event_type} #{counters[event_type]}{_Ansi.RESET} | {event_dict}")
        else:
            lines.append(formatter(event_dict, counters[event_type]))
        return "\n".join(lines)

    @classmethod
    def _configure_file_logging(cls, config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        """JSON-lines file handler, rotating by size unless disabled."""
        file_path = config.file_path or DEFAULT_LOG_FILE
        file_path.parent.mkdir(parents=True, exist_ok=True)

        handler: logging.Handler
        if config.file_rotation:
            handler = RotatingFileHandler(
                file_path,
                maxBytes=config.max_file_size_mb * 1024 * 1024,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        else:
            handler = logging.FileHandler(file_path, encoding="utf-8")

        handler.setLevel(getattr(logging, config.file_level))
        json_formatter = structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=pre_chain,
        )
        handler.setFormatter(json_formatter)
        return handler

    @classmethod
    def get_logger(cls, name: str | None = None):
        """
        Return a structlog logger, configuring defaults on first use.

        Args:
            name: Logger name; the caller's module __name__ when omitted
        """
        if not cls._configured:
            cls.configure()

        if name is None:
            caller = inspect.currentframe()
            caller = caller.f_back if caller else None
            name = caller.f_globals.get("__name__", "tradeperf") if caller else "tradeperf"

        return structlog.get_logger(name)

    @classmethod
    def get_config(cls) -> LoggingConfig:
        """Active configuration (defaults before configure())."""
        return cls._config if cls._config is not None else LoggingConfig()

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Drop handlers and structlog configuration (used by tests and the CLI)."""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.NOTSET)
        cls._config = None
        cls._configured = False
        structlog.reset_defaults()


class _Ansi:
    CYAN = "\033[36m"
    MAGENTA = "\033[35m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    GRAY = "\033[90m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    RESET = "\033[0m"

    @classmethod
    def signed(cls, value: float, text: str) -> str:
        """Green for gains, red for losses."""
        color = cls.GREEN if value >= 0 else cls.RED
        return f"{color}{text}{cls.RESET}"


class _EventFormatters:
    """Colored formatters for analyzer event types."""

    @staticmethod
    def format_trade(event_dict: dict[str, Any], count: int) -> str:
        """Format executed trade with running balance (tree-style, no timestamp)."""
        action = str(event_dict.get("action", "?"))
        price = float(event_dict.get("price", 0))
        balance = float(event_dict.get("balance", 0))
        profit = float(event_dict.get("relative_profit", 0))

        side = _Ansi.signed(1 if action == "buy" else -1, action.upper())

        return " | ".join(
            [
                f"  {_Ansi.DIM}└─{_Ansi.RESET} {_Ansi.CYAN}💱 {'Trade':<12}#{count:<3}{_Ansi.RESET}",
                f"{side} @ {_Ansi.CYAN}{price:,.8g}{_Ansi.RESET}",
                f"Balance: {balance:,.2f}",
                f"Return: {_Ansi.signed(profit, f'{profit:+.2f}%')}",
            ]
        )

    @staticmethod
    def format_roundtrip(event_dict: dict[str, Any], count: int) -> str:
        """Format finalized round trip with entry/exit and P&L."""
        pnl = float(event_dict.get("pnl", 0))
        profit = float(event_dict.get("profit", 0))
        duration = event_dict.get("duration", "")

        line = " | ".join(
            [
                f"  {_Ansi.DIM}└─{_Ansi.RESET} ✓  {'Roundtrip':<12}#{count:<3}",
                f"{_Ansi.CYAN}id={event_dict.get('roundtrip_id', '?')}{_Ansi.RESET}",
                f"Entry: {float(event_dict.get('entry_price', 0)):,.8g}",
                f"Exit: {float(event_dict.get('exit_price', 0)):,.8g}",
                f"P&L: {_Ansi.signed(pnl, f'{pnl:+,.2f} ({profit:+.2f}%)')}",
            ]
        )
        if duration:
            line += f" | {_Ansi.DIM}{duration}{_Ansi.RESET}"
        return line

    @staticmethod
    def format_report(event_dict: dict[str, Any], count: int) -> str:
        """Format final report summary line."""
        profit = float(event_dict.get("relative_profit", 0))
        market = float(event_dict.get("market", 0))
        sharpe = event_dict.get("sharpe")

        parts = [
            f"{_Ansi.MAGENTA}📈 {'Report':<12}{_Ansi.RESET}",
            f"Balance: {float(event_dict.get('balance', 0)):,.2f}",
            f"Return: {_Ansi.signed(profit, f'{profit:+.2f}%')}",
            f"Market: {_Ansi.signed(market, f'{market:+.2f}%')}",
        ]
        if sharpe is not None:
            parts.append(f"Sharpe: {_Ansi.YELLOW}{float(sharpe):.2f}{_Ansi.RESET}")

        return " | ".join(parts)


class _SystemLogFormatters:
    """Formatters for system logs (everything that is not event display)."""

    LEVEL_COLORS = {
        "DEBUG": _Ansi.CYAN,
        "INFO": _Ansi.GREEN,
        "WARNING": _Ansi.YELLOW,
        "ERROR": _Ansi.RED,
        "CRITICAL": _Ansi.MAGENTA,
    }

    @classmethod
    def format_system_log(
        cls, event: str, event_dict: dict[str, Any], level: str, timestamp: str, location: str = ""
    ) -> str:
        """
        Format one system log line.

        `analyzer.<action>` events get an "Analyzer" label and a title-cased
        action; anything else is shown title-cased as is.
        """
        color = cls.LEVEL_COLORS.get(level, _Ansi.RESET)

        parts = [f"{_Ansi.DIM}{timestamp}{_Ansi.RESET}"]
        component, _, action = event.partition(".")
        if component == "analyzer" and action:
            parts.append(f"{color}Analyzer{_Ansi.RESET}")
            parts.append(f"{_Ansi.BOLD}{action.replace('_', ' ').title()}{_Ansi.RESET}")
        else:
            parts.append(f"{color}{event.replace('_', ' ').title()}{_Ansi.RESET}")

        parts.extend(
            f"{key}={_Ansi.CYAN}{value}{_Ansi.RESET}"
            for key, value in sorted(event_dict.items())
            if not key.startswith("_")
        )
        if location:
            parts.append(f"{_Ansi.GRAY}({location}){_Ansi.RESET}")

        return " | ".join(parts)


_EVENT_FORMATTERS: dict[str, Callable[[dict[str, Any], int], str]] = {
    "trade": _EventFormatters.format_trade,
    "roundtrip": _EventFormatters.format_roundtrip,
    "report": _EventFormatters.format_report,
}
