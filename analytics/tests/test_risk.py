"""
Tests for risk statistics utilities.
Synthetic series where deviations, ratios and tail quantiles are known.
"""

import pytest
import numpy as np
import math

from analytics.calculations.returns import simple_returns, annualized_return
from analytics.calculations.risk import (
    NO_DOWNSIDE_RISK,
    volatility,
    sharpe_ratio,
    sortino_ratio,
    downside_deviation,
    beta,
    alpha,
    value_at_risk,
    conditional_var,
)
from analytics.errors import InsufficientDataError, DomainError

SAMPLE_RETURNS = simple_returns([100, 102, 101, 105, 103, 108, 110, 107, 112, 115])


def random_returns(seed: int, n: int = 250) -> np.ndarray:
    return np.random.default_rng(seed).normal(0.0005, 0.015, n)


class TestVolatility:
    """Tests for annualized volatility."""

    def test_volatility_known_values(self):
        """Alternating ±1% returns: sample std is known in closed form."""
        returns = [0.01, -0.01] * 10
        expected_std = np.std(returns, ddof=1)
        assert abs(volatility(returns) - expected_std * math.sqrt(252)) < 1e-12

    def test_volatility_scales_with_trading_days(self):
        vol_252 = volatility(SAMPLE_RETURNS, 252)
        vol_365 = volatility(SAMPLE_RETURNS, 365)
        assert vol_365 > vol_252
        assert abs(vol_365 / vol_252 - math.sqrt(365 / 252)) < 1e-12

    def test_constant_returns_zero_volatility(self):
        assert volatility([0.01] * 10) == 0.0

    def test_volatility_insufficient_data(self):
        with pytest.raises(InsufficientDataError, match="at least 2 returns"):
            volatility([0.01])


class TestSharpeRatio:
    """Tests for the Sharpe ratio."""

    def test_sharpe_ratio_formula(self):
        expected = (annualized_return(SAMPLE_RETURNS) - 0.02) / volatility(SAMPLE_RETURNS)
        assert abs(sharpe_ratio(SAMPLE_RETURNS) - expected) < 1e-12

    def test_higher_risk_free_rate_lowers_sharpe(self):
        assert sharpe_ratio(SAMPLE_RETURNS, 0.0) > sharpe_ratio(SAMPLE_RETURNS, 0.05)

    def test_zero_volatility_gives_zero(self):
        """Constant returns are a degenerate case, not a division by zero."""
        assert sharpe_ratio([0.001] * 20) == 0.0

    def test_finite_for_sample_data(self):
        assert math.isfinite(sharpe_ratio(SAMPLE_RETURNS))


class TestSortinoRatio:
    """Tests for the Sortino ratio and downside deviation."""

    def test_downside_deviation_known_values(self):
        # Hurdle 0: shortfalls -0.02 and -0.04 out of four returns
        returns = [0.01, -0.02, 0.03, -0.04]
        expected = math.sqrt((0.02 ** 2 + 0.04 ** 2) / 2) * math.sqrt(252)
        assert abs(downside_deviation(returns, risk_free_rate=0.0) - expected) < 1e-12

    def test_sortino_ratio_formula(self):
        returns = [0.01, -0.02, 0.03, -0.04, 0.02]
        deviation = downside_deviation(returns)
        expected = (annualized_return(returns) - 0.02) / deviation
        assert abs(sortino_ratio(returns) - expected) < 1e-12

    def test_all_winning_series_is_unbounded(self):
        """No return below the hurdle means no observed downside risk."""
        result = sortino_ratio([0.01, 0.02, 0.015, 0.03])
        assert result == NO_DOWNSIDE_RISK
        assert math.isinf(result) and result > 0

    def test_sortino_differs_from_sharpe(self):
        assert abs(sortino_ratio(SAMPLE_RETURNS) - sharpe_ratio(SAMPLE_RETURNS)) > 0.1

    def test_all_losing_series_is_negative(self):
        assert sortino_ratio([-0.01, -0.02, -0.005, -0.015]) < 0

    def test_sortino_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            sortino_ratio([])


class TestBetaAlpha:
    """Tests for benchmark sensitivity."""

    def test_beta_of_scaled_benchmark(self):
        benchmark = [0.01, -0.02, 0.015, 0.005, -0.01]
        asset = [2 * r for r in benchmark]
        assert abs(beta(asset, benchmark) - 2.0) < 1e-12

    def test_beta_positive_for_co_moving_series(self):
        asset = [0.01, 0.02, -0.01, 0.03, 0.02]
        benchmark = [0.008, 0.018, -0.008, 0.025, 0.015]
        assert beta(asset, benchmark) > 0

    def test_beta_truncates_to_shorter_series(self):
        benchmark = [0.01, -0.02, 0.015, 0.005]
        asset = [3 * r for r in benchmark] + [0.5, -0.7]
        assert abs(beta(asset, benchmark) - 3.0) < 1e-12

    def test_zero_benchmark_variance_gives_zero(self):
        assert beta([0.01, 0.02, -0.01], [0.005, 0.005, 0.005]) == 0.0

    def test_beta_insufficient_overlap(self):
        with pytest.raises(InsufficientDataError):
            beta([0.01, 0.02, 0.03], [0.01])

    def test_alpha_zero_for_benchmark_itself(self):
        """An asset identical to its benchmark has beta 1 and no alpha."""
        benchmark = random_returns(5)
        assert abs(alpha(benchmark, benchmark)) < 1e-12

    def test_alpha_formula(self):
        asset = random_returns(1)
        benchmark = random_returns(2)
        b = beta(asset, benchmark)
        expected = annualized_return(asset) - (0.02 + b * (annualized_return(benchmark) - 0.02))
        assert abs(alpha(asset, benchmark) - expected) < 1e-12


class TestValueAtRisk:
    """Tests for historical VaR and CVaR."""

    def test_var_picks_empirical_quantile(self):
        # 20 returns -0.10, -0.09, ..., 0.09; floor(0.05 × 20) = 1
        returns = [round(-0.10 + 0.01 * i, 2) for i in range(20)]
        assert abs(value_at_risk(returns, 0.95) - 0.09) < 1e-12

    def test_cvar_averages_tail_inclusive(self):
        returns = [round(-0.10 + 0.01 * i, 2) for i in range(20)]
        # Tail = [-0.10, -0.09]
        assert abs(conditional_var(returns, 0.95) - 0.095) < 1e-12

    def test_var_order_independent(self):
        returns = list(random_returns(9, 100))
        shuffled = list(reversed(returns))
        assert value_at_risk(returns) == value_at_risk(shuffled)

    @pytest.mark.parametrize("seed", range(10))
    def test_var_monotonic_in_confidence(self, seed):
        returns = random_returns(seed, int(np.random.default_rng(seed).integers(1, 400)))
        assert value_at_risk(returns, 0.99) >= value_at_risk(returns, 0.95)
        assert value_at_risk(returns, 0.95) >= value_at_risk(returns, 0.90)

    @pytest.mark.parametrize("seed", range(10))
    @pytest.mark.parametrize("confidence", [0.5, 0.9, 0.95, 0.975, 0.99])
    def test_cvar_at_least_var(self, seed, confidence):
        returns = random_returns(seed, int(np.random.default_rng(seed).integers(1, 400)))
        assert conditional_var(returns, confidence) >= value_at_risk(returns, confidence)

    def test_cvar_at_least_var_for_constant_returns(self):
        returns = [0.1] * 3
        assert conditional_var(returns, 0.5) >= value_at_risk(returns, 0.5)

    def test_single_return(self):
        assert value_at_risk([-0.03]) == 0.03
        assert conditional_var([-0.03]) == 0.03

    def test_var_empty_raises(self):
        with pytest.raises(InsufficientDataError):
            value_at_risk([])

    @pytest.mark.parametrize("confidence", [0.0, 1.0, 1.5, -0.1])
    def test_invalid_confidence(self, confidence):
        with pytest.raises(DomainError, match="Confidence"):
            value_at_risk([0.01, -0.02], confidence)
        with pytest.raises(DomainError, match="Confidence"):
            conditional_var([0.01, -0.02], confidence)
