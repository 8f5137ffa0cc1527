"""
Returns calculation utilities.
Pure functions turning price series into return series and compounding them.
"""

import numpy as np

from analytics.calculations.stats import ArrayLike, to_array
from analytics.config import TRADING_DAYS
from analytics.errors import InsufficientDataError, DomainError


def simple_returns(prices: ArrayLike) -> np.ndarray:
    """
    Calculate period-over-period simple returns.

    Formula: R_i = (P_i - P_{i-1}) / P_{i-1}

    Args:
        prices: Prices in chronological order

    Returns:
        Numpy array of returns (length = len(prices) - 1). Empty when fewer
        than 2 prices are given.

    Raises:
        DomainError: If a base price (any price but the last) is zero

    Example:
        prices = [100, 110, 99]
        Returns: [0.10, -0.10]
    """
    price_array = to_array(prices, "prices")

    if price_array.size < 2:
        return np.array([], dtype=np.float64)

    base = price_array[:-1]
    if np.any(base == 0):
        position = int(np.flatnonzero(base == 0)[0])
        raise DomainError(f"Zero price at position {position} cannot be a return base")

    return (price_array[1:] - base) / base


def log_returns(prices: ArrayLike) -> np.ndarray:
    """
    Calculate log returns from a price series.

    Formula: r_i = ln(P_i / P_{i-1})

    Precondition: every price is strictly positive. This is not validated;
    non-positive prices yield NaN or infinite values.

    Args:
        prices: Prices in chronological order

    Returns:
        Numpy array of log returns (length = len(prices) - 1), empty when
        fewer than 2 prices are given
    """
    price_array = to_array(prices, "prices")

    if price_array.size < 2:
        return np.array([], dtype=np.float64)

    with np.errstate(divide='ignore', invalid='ignore'):
        return np.log(price_array[1:] / price_array[:-1])


def cumulative_returns(returns: ArrayLike) -> np.ndarray:
    """
    Compound a return series into running cumulative returns.

    Formula: C_i = Π_{k≤i} (1 + R_k) - 1

    Order matters: position i reflects every return up to and including i.

    Args:
        returns: Fractional returns in chronological order

    Returns:
        Numpy array of cumulative returns (same length as input)
    """
    return_array = to_array(returns, "returns")
    return np.cumprod(1.0 + return_array) - 1.0


def total_return(prices: ArrayLike) -> float:
    """
    Return from the first to the last price.

    Formula: R = P_last / P_first - 1

    Raises:
        InsufficientDataError: If no prices are given
        DomainError: If the first price is zero
    """
    price_array = to_array(prices, "prices")

    if price_array.size == 0:
        raise InsufficientDataError("Insufficient data: need at least 1 price")

    if price_array[0] == 0:
        raise DomainError("First price is zero; total return undefined")

    return float(price_array[-1] / price_array[0] - 1)


def annualized_return(returns: ArrayLike, trading_days: int = TRADING_DAYS) -> float:
    """
    Annualize a series of periodic returns by geometric compounding.

    Formula: R_ann = (Π (1 + R_i))^(trading_days / n) - 1

    Args:
        returns: Periodic (e.g. daily) returns
        trading_days: Periods per year (252 for daily data)

    Returns:
        Annualized return as decimal (0.12 = 12%)

    Raises:
        InsufficientDataError: If the return series is empty
        DomainError: If trading_days is not positive, compounded growth is
            negative, or the result overflows
    """
    return_array = to_array(returns, "returns")

    if return_array.size == 0:
        raise InsufficientDataError("Insufficient data: need at least 1 return to annualize")

    if trading_days <= 0:
        raise DomainError(f"trading_days must be positive, got {trading_days}")

    growth = float(np.prod(1.0 + return_array))

    if growth < 0:
        raise DomainError("Compounded growth is negative (a return below -100%)")

    # Total loss stays a total loss at any horizon
    if growth == 0:
        return -1.0

    try:
        return growth ** (trading_days / return_array.size) - 1
    except OverflowError as e:
        raise DomainError(
            f"Annualized return overflows for {return_array.size} periods"
        ) from e


def returns_to_prices(returns: ArrayLike, initial_value: float = 100.0) -> np.ndarray:
    """
    Rebuild an equity curve from returns.

    Args:
        returns: Periodic returns in chronological order
        initial_value: Starting value of the curve

    Returns:
        Numpy array of length len(returns) + 1 starting at initial_value
    """
    return_array = to_array(returns, "returns")
    growth = np.cumprod(1.0 + return_array)
    return initial_value * np.concatenate(([1.0], growth))
