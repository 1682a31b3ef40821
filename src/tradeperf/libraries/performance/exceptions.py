"""Exceptions raised by the performance analysis library.

Only misuse and contract violations raise. Unpaired sells and zero
denominators are handled locally and never reach the caller.
"""


class PerformanceAnalysisError(Exception):
    """Base class for all performance analysis errors."""


class InsufficientDataError(PerformanceAnalysisError, ValueError):
    """Not enough observations to compute a statistic (e.g. Sharpe with < 2 samples)."""


class DuplicateRoundTripError(PerformanceAnalysisError):
    """A round trip was stored under an id that is not the next ledger index."""


class MissingBaselineError(PerformanceAnalysisError):
    """A report was requested before a portfolio baseline and a candle were observed."""


class AnalyzerFinalizedError(PerformanceAnalysisError, RuntimeError):
    """The analyzer was used after its one-shot finalize() call."""


class ConfigurationError(PerformanceAnalysisError, ValueError):
    """Invalid analyzer or sink configuration."""
