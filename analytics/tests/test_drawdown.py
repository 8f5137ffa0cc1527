"""
Tests for drawdown and recovery calculation utilities.
Uses crafted series with known drawdown patterns for verification.
"""

import pytest
import numpy as np

from analytics.calculations.drawdown import max_drawdown, drawdown_series
from analytics.errors import InsufficientDataError, DomainError


class TestMaxDrawdown:
    """Tests for max_drawdown function."""

    def test_known_case(self):
        """Peak at 120, trough at 80 = 33.33% drawdown."""
        result = max_drawdown([100, 120, 90, 80, 100])

        assert abs(result['max_drawdown'] - 40.0 / 120.0) < 1e-12
        assert result['peak_index'] == 1
        assert result['trough_index'] == 3
        assert result['recovery_index'] is None
        assert result['drawdown_length'] == 2

    def test_peak_trough_recovery_pattern(self):
        """100 -> 120 (peak) -> 90 (trough) -> 125 (recovery)."""
        prices = [100.0, 110.0, 120.0, 110.0, 90.0, 100.0, 115.0, 125.0]
        result = max_drawdown(prices)

        assert abs(result['max_drawdown'] - 0.25) < 1e-12
        assert result['peak_index'] == 2
        assert result['trough_index'] == 4
        assert result['recovery_index'] == 7
        assert result['drawdown_length'] == 2

    def test_peak_is_running_peak_at_time_of_maximum(self):
        """A later, higher peak with a smaller decline does not move the reported peak."""
        # 100 -> 50 is -50%; 200 -> 180 afterwards is only -10%
        prices = [100.0, 50.0, 200.0, 180.0]
        result = max_drawdown(prices)

        assert abs(result['max_drawdown'] - 0.5) < 1e-12
        assert result['peak_index'] == 0
        assert result['trough_index'] == 1
        assert result['recovery_index'] == 2

    def test_multiple_drawdowns_finds_largest(self):
        """Two drawdowns: 120->110 (-8.33%) and 130->95 (-26.92%)."""
        prices = [100.0, 120.0, 110.0, 115.0, 130.0, 95.0, 100.0, 135.0]
        result = max_drawdown(prices)

        assert abs(result['max_drawdown'] - 35.0 / 130.0) < 1e-12
        assert result['peak_index'] == 4
        assert result['trough_index'] == 5
        assert result['recovery_index'] == 7

    def test_first_trough_wins_ties(self):
        """Equal troughs: the first one reaching the maximum is reported."""
        prices = [100.0, 80.0, 100.0, 80.0]
        result = max_drawdown(prices)

        assert abs(result['max_drawdown'] - 0.2) < 1e-12
        assert result['peak_index'] == 0
        assert result['trough_index'] == 1

    def test_first_peak_wins_ties(self):
        """A repeated equal peak does not replace the first one."""
        prices = [100.0, 90.0, 100.0, 70.0]
        result = max_drawdown(prices)

        assert abs(result['max_drawdown'] - 0.3) < 1e-12
        assert result['peak_index'] == 0
        assert result['trough_index'] == 3

    @pytest.mark.parametrize("seed", range(5))
    def test_strictly_increasing_is_zero(self, seed):
        rng = np.random.default_rng(seed)
        prices = 100 + np.cumsum(rng.uniform(0.01, 2.0, 50))
        result = max_drawdown(prices)

        assert result['max_drawdown'] == 0
        assert result['recovery_index'] is None

    def test_all_losing_series(self):
        prices = [100.0, 90.0, 80.0, 70.0]
        result = max_drawdown(prices)

        assert abs(result['max_drawdown'] - 0.3) < 1e-12
        assert result['trough_index'] == 3

    def test_single_price(self):
        result = max_drawdown([100.0])
        assert result['max_drawdown'] == 0.0
        assert result['peak_index'] == 0
        assert result['trough_index'] == 0

    def test_empty_raises(self):
        with pytest.raises(InsufficientDataError, match="Insufficient data"):
            max_drawdown([])

    def test_invalid_prices(self):
        with pytest.raises(DomainError, match="Zero or negative prices"):
            max_drawdown([100.0, 0.0, 110.0])

    @pytest.mark.parametrize("seed", range(5))
    def test_bounded_between_zero_and_one(self, seed):
        rng = np.random.default_rng(seed)
        prices = 100 * np.cumprod(1 + rng.normal(0, 0.03, 200))
        value = max_drawdown(prices)['max_drawdown']
        assert 0.0 <= value < 1.0


class TestDrawdownSeries:
    """Tests for the underwater curve."""

    def test_drawdown_series_values(self):
        series = drawdown_series([100.0, 120.0, 90.0, 80.0, 100.0])
        expected = [0.0, 0.0, 0.25, 1.0 / 3.0, 1.0 / 6.0]

        assert len(series) == 5
        for actual, exp in zip(series, expected):
            assert abs(actual - exp) < 1e-12

    @pytest.mark.parametrize("seed", range(5))
    def test_series_max_matches_max_drawdown(self, seed):
        rng = np.random.default_rng(seed)
        prices = 100 * np.cumprod(1 + rng.normal(0, 0.02, 120))

        assert abs(np.max(drawdown_series(prices)) - max_drawdown(prices)['max_drawdown']) < 1e-12
