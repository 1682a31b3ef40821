"""
System configuration package.

Provides consolidated system-level configuration for the analyzer.

Exports:
    - SystemConfig: Complete system configuration dataclass
    - AnalyzerConfig: Market, risk-free rate and sink settings
    - get_system_config: Get system config singleton
    - reload_system_config: Force reload system config
    - LoggerFactory: Factory for creating configured loggers
    - LoggingConfig: Logging configuration model
"""

from tradeperf.system.config import AnalyzerConfig, SystemConfig, get_system_config, reload_system_config
from tradeperf.system.log_system import LoggerFactory, LoggingConfig

__all__ = [
    "SystemConfig",
    "AnalyzerConfig",
    "get_system_config",
    "reload_system_config",
    "LoggerFactory",
    "LoggingConfig",
]
