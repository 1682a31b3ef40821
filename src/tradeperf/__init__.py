"""
tradeperf - Trading Strategy Performance Analysis

Public API for measuring the performance of a strategy run from its
candle, trade and portfolio event stream.
"""

from importlib.metadata import version

try:
    __version__ = version("tradeperf")
except Exception:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "__version__",
]
