"""
Metrics aggregator - composes return and risk calculations into reports.
Pure functions: statistics summary, portfolio risk, multi-series comparison.
"""

import logging
import math
import numpy as np
from typing import Dict, Any, Optional, List, Sequence

from analytics.calculations.alignment import weighted_portfolio_returns, correlation_matrix
from analytics.calculations.drawdown import max_drawdown
from analytics.calculations.returns import (
    simple_returns,
    total_return,
    annualized_return,
    returns_to_prices,
)
from analytics.calculations.risk import (
    volatility,
    sharpe_ratio,
    sortino_ratio,
    beta,
    alpha,
    value_at_risk,
    conditional_var,
)
from analytics.calculations import stats
from analytics.calculations.stats import ArrayLike, to_array
from analytics.config import TRADING_DAYS, RISK_FREE_RATE, CONFIDENCE
from analytics.errors import InsufficientDataError

logger = logging.getLogger(__name__)

# Two returns are needed for a sample deviation
MIN_SUMMARY_PRICES = 3

# Level behind the var_95 / cvar_95 summary keys
VAR_95_LEVEL = 0.95


def stats_summary(
    prices: ArrayLike,
    benchmark_prices: Optional[ArrayLike] = None,
    risk_free_rate: float = RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS,
    confidence: Optional[float] = None
) -> Dict[str, Any]:
    """
    Compose the full statistics summary for one price series.

    Returns are derived once and shared by every metric. When a non-empty
    benchmark is supplied, beta, alpha and correlation are added using the
    benchmark's own return series (truncated to the common length).

    Args:
        prices: Prices in chronological order
        benchmark_prices: Optional benchmark prices in chronological order
        risk_free_rate: Annual risk-free rate
        trading_days: Periods per year
        confidence: Optional extra confidence level; adds 'confidence', 'var'
            and 'cvar'. var_95 / cvar_95 are always at 95%.

    Returns:
        Flat dictionary of scalar metrics. `sortino_ratio` is None and
        `no_downside_risk` True when no return fell below the hurdle, so the
        summary never carries a raw infinity. `skewness` and `kurtosis` are
        None when there are too few returns (3 and 4 respectively).

    Raises:
        InsufficientDataError: If fewer than 3 prices
    """
    price_array = to_array(prices, "prices")

    if price_array.size < MIN_SUMMARY_PRICES:
        raise InsufficientDataError(
            f"Insufficient data: need at least {MIN_SUMMARY_PRICES} prices for a summary, "
            f"have {price_array.size}"
        )

    returns = simple_returns(price_array)

    summary = {
        'total_return': total_return(price_array),
        'annualized_return': annualized_return(returns, trading_days),
        'volatility': volatility(returns, trading_days),
        'sharpe_ratio': sharpe_ratio(returns, risk_free_rate, trading_days),
        **_sortino_fields(returns, risk_free_rate, trading_days),
        'max_drawdown': max_drawdown(price_array)['max_drawdown'],
        'var_95': value_at_risk(returns, VAR_95_LEVEL),
        'cvar_95': conditional_var(returns, VAR_95_LEVEL),
        **_distribution_fields(returns),
    }

    if confidence is not None:
        summary.update({
            'confidence': confidence,
            'var': value_at_risk(returns, confidence),
            'cvar': conditional_var(returns, confidence),
        })

    if benchmark_prices is not None and len(benchmark_prices) > 0:
        summary.update(_benchmark_fields(returns, benchmark_prices, risk_free_rate, trading_days))

    return summary


def _sortino_fields(
    returns: np.ndarray,
    risk_free_rate: float,
    trading_days: int
) -> Dict[str, Any]:
    """Tag the unbounded Sortino case instead of emitting infinity."""
    ratio = sortino_ratio(returns, risk_free_rate, trading_days)

    if math.isinf(ratio):
        return {'sortino_ratio': None, 'no_downside_risk': True}

    return {'sortino_ratio': ratio, 'no_downside_risk': False}


def _distribution_fields(returns: np.ndarray) -> Dict[str, Optional[float]]:
    """Moments and order statistics of the return distribution."""
    skewness = stats.skewness(returns) if returns.size >= 3 else None
    kurtosis = stats.kurtosis(returns) if returns.size >= 4 else None

    return {
        'skewness': skewness,
        'kurtosis': kurtosis,
        'mean': stats.mean(returns),
        'median': stats.median(returns),
        'standard_deviation': stats.sample_std(returns),
        'min': float(np.min(returns)),
        'max': float(np.max(returns)),
    }


def _benchmark_fields(
    returns: np.ndarray,
    benchmark_prices: ArrayLike,
    risk_free_rate: float,
    trading_days: int
) -> Dict[str, float]:
    """Sensitivity of the asset to an independently derived benchmark series."""
    benchmark_returns = simple_returns(benchmark_prices)

    if benchmark_returns.size != returns.size:
        logger.debug(
            f"Benchmark has {benchmark_returns.size} returns, asset has {returns.size}; "
            f"truncating to the shorter series"
        )

    common = min(returns.size, benchmark_returns.size)

    return {
        'beta': beta(returns, benchmark_returns),
        'alpha': alpha(returns, benchmark_returns, risk_free_rate, trading_days),
        'correlation': stats.correlation(returns[:common], benchmark_returns[:common]),
    }


def portfolio_risk(
    return_series: Sequence[ArrayLike],
    weights: Optional[Sequence[float]] = None,
    confidence: float = CONFIDENCE,
    risk_free_rate: float = RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS,
    initial_value: float = 100.0
) -> Dict[str, Any]:
    """
    Risk metrics of a weighted portfolio of return series.

    The series are truncated to their common length and combined with the
    given weights (equal weights by default). Drawdown is measured on the
    equity curve rebuilt from the portfolio returns starting at
    initial_value.

    Returns:
        Dictionary with 'weights', 'period', 'confidence' and 'risk_metrics'
        (value_at_risk, conditional_var, max_drawdown, volatility,
        sharpe_ratio, sortino_ratio, no_downside_risk)

    Raises:
        InsufficientDataError: If the common length is below 2 returns
    """
    if weights is None and len(return_series) > 0:
        weights = [1.0 / len(return_series)] * len(return_series)

    portfolio_returns = weighted_portfolio_returns(return_series, weights)

    if portfolio_returns.size < 2:
        raise InsufficientDataError(
            f"Insufficient data: need at least 2 common returns, have {portfolio_returns.size}"
        )

    equity_curve = returns_to_prices(portfolio_returns, initial_value)

    risk_metrics = {
        'value_at_risk': value_at_risk(portfolio_returns, confidence),
        'conditional_var': conditional_var(portfolio_returns, confidence),
        'max_drawdown': max_drawdown(equity_curve)['max_drawdown'],
        'volatility': volatility(portfolio_returns, trading_days),
        'sharpe_ratio': sharpe_ratio(portfolio_returns, risk_free_rate, trading_days),
        **_sortino_fields(portfolio_returns, risk_free_rate, trading_days),
    }

    return {
        'weights': [float(w) for w in weights],
        'period': int(portfolio_returns.size),
        'confidence': confidence,
        'risk_metrics': risk_metrics
    }


def compare_series(
    price_map: Dict[str, ArrayLike],
    risk_free_rate: float = RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS
) -> List[Dict[str, Any]]:
    """
    Headline metrics for several price series side by side.

    Args:
        price_map: Mapping of name to prices (at least 3 each)

    Returns:
        List of {'name', 'metrics'} entries in input order
    """
    comparison = []

    for name, prices in price_map.items():
        price_array = to_array(prices, name)
        if price_array.size < MIN_SUMMARY_PRICES:
            raise InsufficientDataError(
                f"Insufficient data for {name}: need at least {MIN_SUMMARY_PRICES} prices, "
                f"have {price_array.size}"
            )

        returns = simple_returns(price_array)
        comparison.append({
            'name': name,
            'metrics': {
                'total_return': total_return(price_array),
                'annualized_return': annualized_return(returns, trading_days),
                'volatility': volatility(returns, trading_days),
                'sharpe_ratio': sharpe_ratio(returns, risk_free_rate, trading_days),
                'max_drawdown': max_drawdown(price_array)['max_drawdown'],
            }
        })

    return comparison


def correlation_report(price_map: Dict[str, ArrayLike]) -> Dict[str, Any]:
    """
    Correlation matrix of the simple returns of several price series.

    Returns:
        Dictionary with 'names', 'period' (shortest return length) and
        'correlation_matrix'
    """
    return_map = {name: simple_returns(prices) for name, prices in price_map.items()}

    short = [name for name, r in return_map.items() if r.size < 2]
    if short:
        raise InsufficientDataError(f"Insufficient data: need at least 3 prices for {short}")

    return {
        'names': list(return_map.keys()),
        'period': min((r.size for r in return_map.values()), default=0),
        'correlation_matrix': correlation_matrix(return_map)
    }
