"""Tests for performance metrics calculations."""

from datetime import timedelta
from decimal import Decimal

import pytest

from tradeperf.libraries.performance.exceptions import InsufficientDataError
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


class TestDescriptiveStatistics:
    """Test mean and standard deviation."""

    def test_mean(self):
        """Test arithmetic mean."""
        assert calculate_mean([1.0, 2.0, 3.0, 6.0]) == 3.0

    def test_mean_empty_raises(self):
        """Test mean of empty series is rejected."""
        with pytest.raises(InsufficientDataError):
            calculate_mean([])

    def test_stdev_is_population(self):
        """Test stdev divides by n (population), not n - 1."""
        # Arrange - sum of squared deviations is 32 over 8 values
        values = [2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]

        # Act
        result = calculate_stdev(values)

        # Assert - sample stdev would be sqrt(32 / 7) ~= 2.138
        assert result == 2.0

    def test_stdev_single_value_is_zero(self):
        """Test one value has zero spread."""
        assert calculate_stdev([5.0]) == 0.0


class TestSharpeRatio:
    """Test Sharpe ratio over excess returns."""

    def test_sharpe_two_returns(self):
        """Test mean / population stdev."""
        # Arrange - mean 2.5, population stdev 7.5
        returns = [10.0, -5.0]

        # Act
        result = calculate_sharpe_ratio(returns)

        # Assert
        assert result == pytest.approx(1 / 3)

    @pytest.mark.parametrize("returns", [[], [5.0]])
    def test_sharpe_fewer_than_two_returns_raises(self, returns):
        """Test Sharpe is undefined with fewer than two samples."""
        with pytest.raises(InsufficientDataError, match="at least 2"):
            calculate_sharpe_ratio(returns)

    def test_sharpe_zero_stdev_returns_zero(self):
        """Test identical returns produce 0 instead of a division error."""
        assert calculate_sharpe_ratio([2.0, 2.0, 2.0]) == 0.0

    def test_sharpe_is_deterministic(self):
        """Test same inputs always give the same result."""
        returns = [3.2, -1.1, 7.4, 0.5]

        assert calculate_sharpe_ratio(returns) == calculate_sharpe_ratio(list(returns))


class TestRiskFreeReturn:
    """Test risk-free return scaling and excess returns."""

    def test_zero_rate(self):
        """Test 0% annual rate earns nothing."""
        assert calculate_period_risk_free_return(0.0, 1000) == 0.0

    def test_full_year_equals_annual_rate(self):
        """Test holding one year earns the annual rate."""
        assert calculate_period_risk_free_return(10.0, 365 * 24) == pytest.approx(10.0)

    def test_half_year_is_compounded(self):
        """Test partial years compound rather than scale linearly."""
        # Act
        result = calculate_period_risk_free_return(10.0, 365 * 12)

        # Assert - (1.1 ** 0.5 - 1) * 100, below the linear 5%
        assert result == pytest.approx(4.8808848)

    def test_excess_returns_subtract_risk_free(self, make_roundtrip):
        """Test excess return is profit minus the duration-scaled rate."""
        # Arrange - one-year holding, 10% profit, 1% risk-free
        trip = make_roundtrip(0, 1000.0, 1100.0, hours=365 * 24)

        # Act
        result = calculate_excess_returns([trip], 1.0)

        # Assert
        assert result == [pytest.approx(9.0)]

    def test_excess_returns_with_zero_rate_are_profits(self, make_roundtrip):
        """Test excess returns equal profits when the rate is 0."""
        trips = [make_roundtrip(0, 1000.0, 950.0), make_roundtrip(1, 950.0, 1045.0)]

        result = calculate_excess_returns(trips, 0.0)

        assert result == [pytest.approx(-5.0), pytest.approx(10.0)]


class TestMaxDrawdown:
    """Test drawdown over round-trip exit balances."""

    def test_no_roundtrips(self):
        """Test empty ledger has no drawdown."""
        assert calculate_max_drawdown([], 1000.0) == 0.0

    def test_monotonic_gains_no_drawdown(self, make_roundtrip):
        """Test rising exits never draw down."""
        trips = [make_roundtrip(0, 1000.0, 1100.0), make_roundtrip(1, 1100.0, 1200.0)]

        assert calculate_max_drawdown(trips, 1000.0) == 0.0

    def test_drawdown_from_new_peak(self, make_roundtrip):
        """Test drawdown is measured from the highest exit so far."""
        # Arrange - peak moves to 1100, then exit at 990
        trips = [make_roundtrip(0, 1000.0, 1100.0), make_roundtrip(1, 1100.0, 990.0)]

        # Act
        result = calculate_max_drawdown(trips, 1000.0)

        # Assert
        assert result == pytest.approx(-10.0)

    def test_drawdown_from_start_balance(self, make_roundtrip):
        """Test the starting balance is the initial peak."""
        trips = [make_roundtrip(0, 1000.0, 950.0)]

        assert calculate_max_drawdown(trips, 1000.0) == pytest.approx(-5.0)

    def test_keeps_most_negative(self, make_roundtrip):
        """Test later shallower drawdowns do not replace the deepest one."""
        trips = [
            make_roundtrip(0, 1000.0, 800.0),
            make_roundtrip(1, 800.0, 950.0),
        ]

        assert calculate_max_drawdown(trips, 1000.0) == pytest.approx(-20.0)


class TestZeroGuards:
    """Test ratio helpers return 0 instead of dividing by zero."""

    def test_win_rate_no_trips(self):
        assert calculate_win_rate(0, 0) == 0.0

    def test_win_rate(self):
        assert calculate_win_rate(4, 3) == 75.0

    def test_average_zero_count(self):
        assert calculate_average(0.0, 0) == 0.0

    def test_average(self):
        assert calculate_average(15.0, 2) == 7.5

    def test_relative_change_zero_start(self):
        assert calculate_relative_change(0.0, 110.0) == 0.0

    def test_relative_change(self):
        assert calculate_relative_change(100.0, 110.0) == pytest.approx(10.0)


class TestDurationAndRounding:
    """Test duration conversion, fixed rounding and humanized durations."""

    def test_duration_in_years(self):
        """Test a Gregorian year is one year."""
        assert duration_in_years(timedelta(days=365.2425)) == pytest.approx(1.0)

    def test_duration_zero(self):
        assert duration_in_years(timedelta(0)) == 0.0

    @pytest.mark.parametrize(
        ("value", "places", "expected"),
        [
            (0.25, 1, Decimal("0.3")),
            (-5.0, 1, Decimal("-5.0")),
            (10.000000000000014, 1, Decimal("10.0")),
            (1 / 3, 8, Decimal("0.33333333")),
            # Binary value of 2.675 is slightly below the tie
            (2.675, 2, Decimal("2.67")),
        ],
    )
    def test_round_fixed(self, value, places, expected):
        """Test half-up rounding on the exact binary value."""
        assert round_fixed(value, places) == expected

    def test_round_fixed_keeps_trailing_zeros(self):
        """Test the fixed number of places is always present."""
        assert str(round_fixed(0.0, 1)) == "0.0"
        assert str(round_fixed(3.0, 8)) == "3.00000000"

    @pytest.mark.parametrize(
        ("duration", "expected"),
        [
            (timedelta(seconds=10), "a few seconds"),
            (timedelta(seconds=44), "a few seconds"),
            (timedelta(seconds=45), "a minute"),
            (timedelta(minutes=5), "5 minutes"),
            (timedelta(minutes=44), "44 minutes"),
            (timedelta(minutes=45), "an hour"),
            (timedelta(hours=3), "3 hours"),
            (timedelta(hours=21), "21 hours"),
            (timedelta(hours=22), "a day"),
            (timedelta(days=3), "3 days"),
            (timedelta(days=25), "25 days"),
            (timedelta(days=26), "a month"),
            (timedelta(days=90), "3 months"),
            (timedelta(days=400), "a year"),
            (timedelta(days=365 * 3), "3 years"),
        ],
    )
    def test_humanize_duration(self, duration, expected):
        """Test relative-time thresholds."""
        assert humanize_duration(duration) == expected

    def test_humanize_negative_duration_uses_magnitude(self):
        """Test direction is ignored."""
        assert humanize_duration(timedelta(hours=-3)) == "3 hours"
