"""
System configuration for tradeperf.

One configuration for the whole analyzer: which market the run trades,
the risk-free rate used for Sharpe, which output sink receives reports,
and how logging behaves.

Loading order:
1. Built-in defaults (dataclass defaults below)
2. config/system.yaml (or an explicit path), merged over the defaults
3. ${VAR} placeholders substituted from the environment

Example system.yaml:
    analyzer:
      currency: USDT
      asset: BTC
      risk_free_return: 2.5
      sink: log

    logging:
      level: DEBUG
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

from tradeperf.libraries.performance.exceptions import ConfigurationError
from tradeperf.system import log_system

DEFAULT_CONFIG_PATH = Path("config/system.yaml")

SinkKind = Literal["log", "relay"]
VALID_SINKS = ("log", "relay")

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass
class AnalyzerConfig:
    """Performance analyzer settings.

    Attributes:
        currency: Quote currency the balance is valued in (e.g. "USDT")
        asset: Traded asset (e.g. "BTC")
        risk_free_return: Annual risk-free rate in percent used for Sharpe
        sink: Output sink receiving trade/round-trip/report events ("log" or "relay")
        display_report: Render the final report as a console table (log sink only)
    """

    currency: str = "USDT"
    asset: str = "BTC"
    risk_free_return: float = 1.0
    sink: SinkKind = "log"
    display_report: bool = False

    def __post_init__(self) -> None:
        """Validate analyzer configuration."""
        if self.sink not in VALID_SINKS:
            raise ConfigurationError(f"Invalid sink: {self.sink}. Must be one of {list(VALID_SINKS)}")
        self.risk_free_return = float(self.risk_free_return)
        if self.risk_free_return <= -100:
            raise ConfigurationError(f"risk_free_return must be greater than -100%, got {self.risk_free_return}")


@dataclass
class LoggingConfig:
    """Logging settings as written in system.yaml.

    Converted to the runtime log_system.LoggingConfig via to_logger_config().
    """

    level: str = "INFO"
    format: str = "console"
    timestamp_format: str = "compact"
    enable_file: bool = False
    file_path: str = "logs/tradeperf.log"
    file_level: str = "WARNING"
    file_rotation: bool = True
    max_file_size_mb: int = 10
    backup_count: int = 3
    enable_event_display: bool = True

    def to_logger_config(self) -> log_system.LoggingConfig:
        """Build the LoggerFactory configuration model."""
        return log_system.LoggingConfig(
            level=self.level.upper(),  # type: ignore[arg-type]
            format=self.format,  # type: ignore[arg-type]
            timestamp_format=self.timestamp_format,  # type: ignore[arg-type]
            enable_file=self.enable_file,
            file_path=Path(self.file_path),
            file_level=self.file_level.upper(),  # type: ignore[arg-type]
            file_rotation=self.file_rotation,
            max_file_size_mb=self.max_file_size_mb,
            backup_count=self.backup_count,
            enable_event_display=self.enable_event_display,
        )


@dataclass
class SystemConfig:
    """Complete system configuration."""

    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "SystemConfig":
        """
        Load configuration from YAML, falling back to defaults.

        Args:
            path: Config file path (defaults to config/system.yaml).
                  A missing file yields the built-in defaults.

        Returns:
            SystemConfig

        Raises:
            ConfigurationError: If values are invalid
            yaml.YAMLError: If the file is not valid YAML
        """
        config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

        data: dict[str, Any] = {}
        if config_path.exists():
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigurationError(f"{config_path}: top level must be a mapping, got {type(data).__name__}")

        return cls._from_dict(_substitute_env_vars(data))

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "SystemConfig":
        """Build configuration from a (possibly partial) dictionary."""
        defaults = _defaults_as_dict()

        unknown = sorted(set(data) - set(defaults))
        if unknown:
            raise ConfigurationError(f"Unknown configuration section(s): {unknown}. Expected {sorted(defaults)}")

        # An empty section ("analyzer:" alone) loads as None
        sections: dict[str, Any] = {}
        for name, section in data.items():
            if section is None:
                section = {}
            if not isinstance(section, dict):
                raise ConfigurationError(f"Section '{name}' must be a mapping, got {type(section).__name__}")
            sections[name] = section

        merged = _deep_merge(defaults, sections)

        try:
            analyzer = AnalyzerConfig(**merged["analyzer"])
            logging_config = LoggingConfig(**merged["logging"])
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}") from e

        return cls(analyzer=analyzer, logging=logging_config)


def _defaults_as_dict() -> dict[str, Any]:
    return {
        "analyzer": dict(AnalyzerConfig().__dict__),
        "logging": dict(LoggingConfig().__dict__),
    }


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base (override wins)."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _substitute_env_vars(value: Any) -> Any:
    """Replace ${VAR} placeholders with environment values (undefined vars stay as-is)."""
    if isinstance(value, dict):
        return {key: _substitute_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    if isinstance(value, str):
        return _ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value


_system_config: SystemConfig | None = None


def get_system_config(path: Path | str | None = None) -> SystemConfig:
    """
    Get the system configuration singleton.

    Args:
        path: Explicit config file; when given, the file is loaded and cached

    Returns:
        Cached SystemConfig
    """
    global _system_config
    if path is not None or _system_config is None:
        _system_config = SystemConfig.load(path)
    return _system_config


def reload_system_config(path: Path | str | None = None) -> SystemConfig:
    """Force a reload of the system configuration singleton."""
    global _system_config
    _system_config = SystemConfig.load(path)
    return _system_config
