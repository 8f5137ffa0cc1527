"""
Risk statistics utilities.
Volatility, risk-adjusted ratios, benchmark sensitivity and historical tail risk.
"""

import logging
import math
import numpy as np

from analytics.calculations.alignment import align_pair
from analytics.calculations.returns import annualized_return
from analytics.calculations.stats import (
    ArrayLike,
    to_array,
    sample_std,
    sample_variance,
    covariance,
    correlation,
)
from analytics.config import TRADING_DAYS, RISK_FREE_RATE, CONFIDENCE
from analytics.errors import InsufficientDataError, DomainError

logger = logging.getLogger(__name__)

# Sortino ratio when no return falls below the risk-free hurdle
NO_DOWNSIDE_RISK = math.inf

__all__ = [
    'NO_DOWNSIDE_RISK',
    'volatility',
    'sharpe_ratio',
    'sortino_ratio',
    'downside_deviation',
    'beta',
    'alpha',
    'covariance',
    'correlation',
    'value_at_risk',
    'conditional_var',
]


def volatility(returns: ArrayLike, trading_days: int = TRADING_DAYS) -> float:
    """
    Calculate annualized volatility.

    Formula: σ_ann = std(returns, ddof=1) × √trading_days

    Args:
        returns: Periodic returns
        trading_days: Annualization factor (252 for daily to annual)

    Returns:
        Annualized volatility as decimal (0.25 = 25%)

    Raises:
        InsufficientDataError: If fewer than 2 returns
    """
    return_array = to_array(returns, "returns")

    if return_array.size < 2:
        raise InsufficientDataError(
            f"Insufficient data: need at least 2 returns for volatility, have {return_array.size}"
        )

    return sample_std(return_array) * math.sqrt(trading_days)


def sharpe_ratio(
    returns: ArrayLike,
    risk_free_rate: float = RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS
) -> float:
    """
    Calculate the annualized Sharpe ratio.

    Formula: (R_ann - R_f) / σ_ann

    Returns 0.0 when volatility is exactly zero.
    """
    annual_vol = volatility(returns, trading_days)

    if annual_vol == 0:
        logger.debug("Zero volatility; Sharpe ratio defined as 0")
        return 0.0

    return (annualized_return(returns, trading_days) - risk_free_rate) / annual_vol


def downside_deviation(
    returns: ArrayLike,
    risk_free_rate: float = RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS
) -> float:
    """
    Annualized downside deviation below the per-period risk-free hurdle.

    Formula: √(mean((R_i - h)²  for R_i < h)) × √trading_days, h = R_f / trading_days

    Returns 0.0 when no return falls below the hurdle.
    """
    return_array = to_array(returns, "returns")
    hurdle = risk_free_rate / trading_days

    shortfalls = return_array[return_array < hurdle] - hurdle
    if shortfalls.size == 0:
        return 0.0

    return math.sqrt(float(np.mean(shortfalls ** 2))) * math.sqrt(trading_days)


def sortino_ratio(
    returns: ArrayLike,
    risk_free_rate: float = RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS
) -> float:
    """
    Calculate the annualized Sortino ratio.

    Formula: (R_ann - R_f) / downside_deviation

    Returns NO_DOWNSIDE_RISK (+inf) when there is no downside return or the
    downside deviation is zero.

    Raises:
        InsufficientDataError: If the return series is empty
    """
    annual_return = annualized_return(returns, trading_days)
    deviation = downside_deviation(returns, risk_free_rate, trading_days)

    if deviation == 0:
        logger.debug("No downside returns; Sortino ratio is unbounded")
        return NO_DOWNSIDE_RISK

    return (annual_return - risk_free_rate) / deviation


def beta(asset_returns: ArrayLike, benchmark_returns: ArrayLike) -> float:
    """
    Calculate beta of an asset against a benchmark.

    Formula: β = cov(R_a, R_b) / var(R_b)

    Both series are truncated to the shorter length from the start. Sample
    (n-1) conventions are used for both covariance and variance. Returns
    0.0 when the benchmark variance is zero.

    Raises:
        InsufficientDataError: If the common length is below 2
    """
    asset, benchmark = align_pair(asset_returns, benchmark_returns)

    benchmark_variance = sample_variance(benchmark)
    if benchmark_variance == 0:
        logger.debug("Zero benchmark variance; beta defined as 0")
        return 0.0

    return covariance(asset, benchmark) / benchmark_variance


def alpha(
    asset_returns: ArrayLike,
    benchmark_returns: ArrayLike,
    risk_free_rate: float = RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS
) -> float:
    """
    Calculate Jensen's alpha (annualized).

    Formula: α = R_a,ann - (R_f + β × (R_b,ann - R_f))

    Each annualized return is taken over its own full series; beta uses the
    truncated pair.
    """
    asset_annualized = annualized_return(asset_returns, trading_days)
    benchmark_annualized = annualized_return(benchmark_returns, trading_days)
    asset_beta = beta(asset_returns, benchmark_returns)

    return asset_annualized - (risk_free_rate + asset_beta * (benchmark_annualized - risk_free_rate))


def _tail_cutoff(sorted_returns: np.ndarray, confidence: float) -> int:
    if not 0.0 < confidence < 1.0:
        raise DomainError(f"Confidence must be between 0 and 1, got {confidence}")

    if sorted_returns.size == 0:
        raise InsufficientDataError("Insufficient data: need at least 1 return for VaR")

    # 1e-9 absorbs representation error, e.g. (1 - 0.95) * 20 = 1.0000000000000009
    index = int(math.floor((1.0 - confidence) * sorted_returns.size + 1e-9))
    return min(index, sorted_returns.size - 1)


def value_at_risk(returns: ArrayLike, confidence: float = CONFIDENCE) -> float:
    """
    Historical-simulation Value at Risk.

    Sort returns ascending, take the element at floor((1 - confidence) × n)
    and negate it, so a loss is reported as a positive number.

    Args:
        returns: Periodic returns
        confidence: Confidence level in (0, 1)

    Returns:
        VaR as a positive loss magnitude (0.03 = 3% loss)

    Raises:
        InsufficientDataError: If returns are empty
        DomainError: If confidence is outside (0, 1)
    """
    sorted_returns = np.sort(to_array(returns, "returns"))
    index = _tail_cutoff(sorted_returns, confidence)
    return float(-sorted_returns[index])


def conditional_var(returns: ArrayLike, confidence: float = CONFIDENCE) -> float:
    """
    Conditional VaR (expected shortfall).

    Negated mean of the sorted returns up to and including the VaR cutoff.
    Always at least as large as value_at_risk for the same confidence.
    """
    sorted_returns = np.sort(to_array(returns, "returns"))
    index = _tail_cutoff(sorted_returns, confidence)
    # Every tail element is <= the cutoff; clamp away summation rounding
    tail_mean = min(float(np.mean(sorted_returns[:index + 1])), float(sorted_returns[index]))
    return -tail_mean
