"""Performance analysis library for strategy runs.

This library provides the building blocks of the performance analyzer:

1. **Models** (`models.py`): Pydantic data structures
   - Candle, PortfolioSnapshot, Trade: analyzer inputs
   - RoundTrip: Finalized buy-then-sell lifecycle
   - PerformanceReport: Running or final report snapshot

2. **Metrics** (`metrics.py`): Pure calculation functions
   - Statistics: mean, population stdev, Sharpe
   - Risk: max drawdown, duration-scaled risk-free return
   - Formatting: fixed-point rounding, humanized durations

3. **Calculators** (`calculators.py`): Stateful incremental calculators
   - PriceWindowTracker: Analysis window and portfolio baseline
   - RoundTripTracker: Buy/sell pairing state machine
   - StatisticsEngine: Running round-trip aggregates and Sharpe cache

Architecture:
    - Models: Immutable data structures (Pydantic)
    - Metrics: Stateless pure functions (testable, composable)
    - Calculators: Stateful classes fed in event order
"""

# Stateful calculators
from tradeperf.libraries.performance.calculators import (
    IncrementalSharpeCalculator,
    PriceWindowTracker,
    RoundTripLedger,
    RoundTripTracker,
    SharpeCalculator,
    StatisticsEngine,
)

# Exceptions
from tradeperf.libraries.performance.exceptions import (
    AnalyzerFinalizedError,
    ConfigurationError,
    DuplicateRoundTripError,
    InsufficientDataError,
    MissingBaselineError,
    PerformanceAnalysisError,
)

# Pure calculation functions
from tradeperf.libraries.performance.metrics import (
    calculate_average,
    calculate_excess_returns,
    calculate_max_drawdown,
    calculate_mean,
    calculate_period_risk_free_return,
    calculate_relative_change,
    calculate_sharpe_ratio,
    calculate_stdev,
    calculate_win_rate,
    duration_in_years,
    humanize_duration,
    round_fixed,
)

# Models
from tradeperf.libraries.performance.models import (
    Candle,
    PerformanceReport,
    PortfolioSnapshot,
    RoundTrip,
    RoundTripLeg,
    RoundTripState,
    Trade,
    TradeAction,
)

__all__ = [
    # Models
    "Candle",
    "PortfolioSnapshot",
    "Trade",
    "TradeAction",
    "RoundTrip",
    "RoundTripLeg",
    "RoundTripState",
    "PerformanceReport",
    # Exceptions
    "PerformanceAnalysisError",
    "InsufficientDataError",
    "DuplicateRoundTripError",
    "MissingBaselineError",
    "AnalyzerFinalizedError",
    "ConfigurationError",
    # Metrics (pure functions)
    "calculate_mean",
    "calculate_stdev",
    "calculate_sharpe_ratio",
    "calculate_period_risk_free_return",
    "calculate_excess_returns",
    "calculate_max_drawdown",
    "calculate_win_rate",
    "calculate_average",
    "calculate_relative_change",
    "duration_in_years",
    "humanize_duration",
    "round_fixed",
    # Calculators (stateful)
    "PriceWindowTracker",
    "RoundTripLedger",
    "RoundTripTracker",
    "SharpeCalculator",
    "IncrementalSharpeCalculator",
    "StatisticsEngine",
]
