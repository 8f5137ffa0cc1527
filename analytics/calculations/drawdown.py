"""
Drawdown and recovery calculation utilities.
Pure functions for maximum drawdown analysis.
"""

import numpy as np
from typing import Dict, Optional, Union

from analytics.calculations.stats import ArrayLike, to_array
from analytics.errors import InsufficientDataError, DomainError


def _positive_prices(prices: ArrayLike) -> np.ndarray:
    price_array = to_array(prices, "prices")

    if price_array.size == 0:
        raise InsufficientDataError("Insufficient data: need at least 1 price")

    if np.any(price_array <= 0):
        raise DomainError("Zero or negative prices not allowed")

    return price_array


def max_drawdown(prices: ArrayLike) -> Dict[str, Union[float, int, None]]:
    """
    Calculate the maximum peak-to-trough decline of a price series.

    Single forward scan tracking the running peak. The first peak and the
    first trough reaching the maximum win ties.

    Args:
        prices: Prices in chronological order (all > 0)

    Returns:
        Dictionary with drawdown statistics:
        - max_drawdown: Largest decline as a positive fraction of the peak
        - peak_index: Index of the running peak when the maximum was reached
        - trough_index: Index of the lowest point of that decline
        - recovery_index: First index after the trough priced above the
          peak (None if never recovered or no drawdown)
        - drawdown_length: Periods from peak to trough

    Raises:
        InsufficientDataError: If prices are empty
        DomainError: If any price is zero or negative

    Example:
        prices = [100, 120, 90, 80, 100]
        max_drawdown = (120 - 80) / 120 = 0.333, peak_index 1, trough_index 3
    """
    price_array = _positive_prices(prices)

    worst = 0.0
    peak = price_array[0]
    running_peak_index = 0
    peak_index = 0
    trough_index = 0

    for i in range(1, price_array.size):
        price = price_array[i]
        if price > peak:
            peak = price
            running_peak_index = i

        drawdown = (peak - price) / peak
        if drawdown > worst:
            worst = drawdown
            peak_index = running_peak_index
            trough_index = i

    recovery_index: Optional[int] = None
    if worst > 0:
        peak_value = price_array[peak_index]
        for i in range(trough_index + 1, price_array.size):
            if price_array[i] > peak_value:
                recovery_index = i
                break

    return {
        'max_drawdown': float(worst),
        'peak_index': peak_index,
        'trough_index': trough_index,
        'recovery_index': recovery_index,
        'drawdown_length': trough_index - peak_index
    }


def drawdown_series(prices: ArrayLike) -> np.ndarray:
    """
    Calculate the drawdown at every point (underwater curve).

    Formula: DD_i = (max_{k≤i} P_k - P_i) / max_{k≤i} P_k

    Args:
        prices: Prices in chronological order (all > 0)

    Returns:
        Numpy array of drawdowns in [0, 1), same length as prices
    """
    price_array = _positive_prices(prices)

    running_max = np.maximum.accumulate(price_array)
    return (running_max - price_array) / running_max
