"""Performance metrics calculation functions.

Pure functions for calculating performance statistics from round trips
and return series. All functions are stateless and testable.

Philosophy:
- Pure functions: same inputs always produce same outputs
- No side effects: don't modify inputs or global state
- Explicit zero guards: ratios default to 0 instead of NaN/Infinity
- One documented convention per statistic (population stdev)

Usage:
    >>> from tradeperf.libraries.performance import metrics
    >>>
    >>> metrics.calculate_stdev([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])
    2.0
    >>> metrics.calculate_sharpe_ratio([10.0, -5.0])
    0.3333333333333333
"""

import math
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

from tradeperf.libraries.performance.exceptions import InsufficientDataError
from tradeperf.libraries.performance.models import RoundTrip

HOURS_PER_YEAR = 365 * 24
DAYS_PER_YEAR = 365.2425  # Gregorian year, used to annualize report timespans
MIN_SHARPE_SAMPLES = 2


def calculate_mean(values: Sequence[float]) -> float:
    """
    Arithmetic mean.

    Raises:
        InsufficientDataError: If values is empty
    """
    if not values:
        raise InsufficientDataError("Mean of an empty series is undefined")
    return sum(values) / len(values)


def calculate_stdev(values: Sequence[float]) -> float:
    """
    Population standard deviation (divides by n, not n - 1).

    Args:
        values: Sample values

    Returns:
        sqrt(sum((x - mean)^2) / n)

    Raises:
        InsufficientDataError: If values is empty

    Example:
        >>> calculate_stdev([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])
        2.0
    """
    mean = calculate_mean(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def calculate_sharpe_ratio(returns: Sequence[float]) -> float:
    """
    Sharpe ratio of a series of excess returns.

    mean(returns) / stdev(returns) using the population stdev. Returns are
    expected to already be net of the risk-free rate.

    Args:
        returns: Excess returns (percent per round trip)

    Returns:
        Sharpe ratio, or 0.0 when every return is identical (zero stdev)

    Raises:
        InsufficientDataError: With fewer than two returns
    """
    if len(returns) < MIN_SHARPE_SAMPLES:
        raise InsufficientDataError(
            f"Sharpe ratio needs at least {MIN_SHARPE_SAMPLES} returns, got {len(returns)}"
        )

    stdev = calculate_stdev(returns)
    if stdev == 0:
        return 0.0

    return calculate_mean(returns) / stdev


def calculate_period_risk_free_return(annual_rate_pct: float, hours: float) -> float:
    """
    Risk-free return earned over a holding period, compounded from an annual rate.

    Args:
        annual_rate_pct: Annual risk-free rate in percent (e.g. 1.0 for 1%)
        hours: Holding period in hours

    Returns:
        Period risk-free return in percent

    Example:
        >>> calculate_period_risk_free_return(10.0, 365 * 24)
        10.000000000000009
    """
    years = hours / HOURS_PER_YEAR
    rate = annual_rate_pct / 100.0
    return (math.pow(1.0 + rate, years) - 1.0) * 100.0


def calculate_excess_returns(roundtrips: Sequence[RoundTrip], annual_rate_pct: float) -> list[float]:
    """Per round trip profit (%) minus the duration-scaled risk-free return (%)."""
    return [rt.profit - calculate_period_risk_free_return(annual_rate_pct, rt.duration_hours) for rt in roundtrips]


def calculate_max_drawdown(roundtrips: Sequence[RoundTrip], start_balance: float) -> float:
    """
    Maximum drawdown across round-trip exit balances.

    Walks round trips in order keeping a running peak that starts at the
    portfolio's starting balance. Every exit at or below the peak is a
    drawdown of (exit - peak) / peak * 100.

    Args:
        roundtrips: Finalized round trips in id order
        start_balance: Starting portfolio balance (initial peak)

    Returns:
        Most negative drawdown percentage (<= 0), 0.0 if none

    Example:
        >>> # exits 1100 then 990: (990 - 1100) / 1100 = -10%
        >>> calculate_max_drawdown(trips, 1000.0)
        -10.0
    """
    peak = start_balance
    max_dd = 0.0

    for rt in roundtrips:
        if rt.exit_balance > peak:
            peak = rt.exit_balance
        elif peak > 0:
            dd = ((rt.exit_balance - peak) / peak) * 100.0
            if dd < max_dd:
                max_dd = dd

    return max_dd


def calculate_win_rate(total_trips: int, profitable_trips: int) -> float:
    """Percentage of round trips that closed with profit (0 if none closed)."""
    if total_trips == 0:
        return 0.0
    return (profitable_trips * 100.0) / total_trips


def calculate_average(total: float, count: int) -> float:
    """Average of an accumulated total (0 if count is zero)."""
    if count == 0:
        return 0.0
    return total / count


def calculate_relative_change(start: float, end: float) -> float:
    """Percentage change from start to end (end / start * 100 - 100), 0 if start is 0."""
    if start == 0:
        return 0.0
    return end / start * 100.0 - 100.0


def duration_in_years(duration: timedelta) -> float:
    """Fractional years in a duration."""
    return duration.total_seconds() / 86400.0 / DAYS_PER_YEAR


def round_fixed(value: float, places: int) -> Decimal:
    """
    Round to a fixed number of decimal places.

    Rounds the exact binary value half away from zero, which is how
    fixed-point price displays conventionally behave.

    Example:
        >>> round_fixed(0.25, 1)
        Decimal('0.3')
        >>> round_fixed(-5.0, 1)
        Decimal('-5.0')
    """
    return Decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def _round_half_up(value: float) -> int:
    """Round half up (towards positive infinity on ties)."""
    return math.floor(value + 0.5)


# Relative-time thresholds
_HUMANIZE_SECONDS_FEW = 44
_HUMANIZE_SECONDS = 45
_HUMANIZE_MINUTES = 45
_HUMANIZE_HOURS = 22
_HUMANIZE_DAYS = 26
_HUMANIZE_MONTHS = 11


def humanize_duration(duration: timedelta) -> str:
    """
    Describe a duration the way relative-time displays do.

    Thresholds: up to 44s "a few seconds", under 45 minutes in minutes,
    under 22 hours in hours, under 26 days in days, under 11 months in
    months, otherwise years. Each unit is rounded half up.

    Example:
        >>> humanize_duration(timedelta(days=3))
        '3 days'
        >>> humanize_duration(timedelta(days=400))
        'a year'
    """
    total_seconds = abs(duration.total_seconds())
    days_exact = total_seconds / 86400.0
    months_exact = days_exact * 4800.0 / 146097.0

    seconds = _round_half_up(total_seconds)
    minutes = _round_half_up(total_seconds / 60.0)
    hours = _round_half_up(total_seconds / 3600.0)
    days = _round_half_up(days_exact)
    months = _round_half_up(months_exact)
    years = _round_half_up(months_exact / 12.0)

    if seconds <= _HUMANIZE_SECONDS_FEW:
        return "a few seconds"
    if seconds < _HUMANIZE_SECONDS:
        return f"{seconds} seconds"
    if minutes <= 1:
        return "a minute"
    if minutes < _HUMANIZE_MINUTES:
        return f"{minutes} minutes"
    if hours <= 1:
        return "an hour"
    if hours < _HUMANIZE_HOURS:
        return f"{hours} hours"
    if days <= 1:
        return "a day"
    if days < _HUMANIZE_DAYS:
        return f"{days} days"
    if months <= 1:
        return "a month"
    if months < _HUMANIZE_MONTHS:
        return f"{months} months"
    if years <= 1:
        return "a year"
    return f"{years} years"
