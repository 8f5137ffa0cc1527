"""
Technical indicator utilities.
Moving averages, momentum and volatility bands computed directly on prices.

Output alignment: every indicator returns values only for positions where
its window is complete. The first output of sma/ema/bollinger_bands
corresponds to price index period - 1, the first RSI value to index
period + 1, and the first MACD histogram value to index slow + signal - 2.
"""

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from typing import Dict, Optional

from analytics.calculations.stats import ArrayLike, to_array
from analytics.config import (
    RSI_PERIOD,
    BOLLINGER_PERIOD,
    BOLLINGER_K,
    MACD_FAST,
    MACD_SLOW,
    MACD_SIGNAL,
)
from analytics.errors import InsufficientDataError, DomainError


def _windowed(prices: ArrayLike, period: int, required: Optional[int] = None) -> np.ndarray:
    """Validate period against the series and return the price array."""
    if period < 1:
        raise DomainError(f"Period must be at least 1, got {period}")

    price_array = to_array(prices, "prices")
    required = period if required is None else required

    if price_array.size < required:
        raise InsufficientDataError(
            f"Insufficient data: need {required} prices for period {period}, have {price_array.size}"
        )

    return price_array


def sma(prices: ArrayLike, period: int) -> np.ndarray:
    """
    Simple moving average.

    Args:
        prices: Prices in chronological order
        period: Window size (1 <= period <= len(prices))

    Returns:
        Numpy array of window means (length = len(prices) - period + 1)

    Example:
        sma([10, 11, 12, 13, 14, 15], 3) -> [11, 12, 13, 14]
    """
    price_array = _windowed(prices, period)
    return sliding_window_view(price_array, period).mean(axis=1)


def ema(prices: ArrayLike, period: int) -> np.ndarray:
    """
    Exponential moving average seeded with the first SMA.

    Formula: EMA_t = (P_t - EMA_{t-1}) × 2 / (period + 1) + EMA_{t-1}

    Args:
        prices: Prices in chronological order
        period: Smoothing period (1 <= period <= len(prices))

    Returns:
        Numpy array (length = len(prices) - period + 1) whose first element
        equals the SMA of the first `period` prices
    """
    price_array = _windowed(prices, period)
    multiplier = 2.0 / (period + 1)

    values = np.empty(price_array.size - period + 1)
    values[0] = np.mean(price_array[:period])

    for i, price in enumerate(price_array[period:], start=1):
        values[i] = (price - values[i - 1]) * multiplier + values[i - 1]

    return values


def rsi(prices: ArrayLike, period: int = RSI_PERIOD) -> np.ndarray:
    """
    Relative Strength Index with Wilder smoothing.

    Average gain and loss are seeded with the plain mean of the first
    `period` price changes, then every later change updates them as
    avg = (avg × (period - 1) + change) / period and emits one value.

    Formula: RSI = 100 - 100 / (1 + avg_gain / avg_loss), 100 when avg_loss is 0

    Args:
        prices: Prices in chronological order
        period: Lookback period (default: 14)

    Returns:
        Numpy array of RSI values in [0, 100] (length = len(prices) - period - 1)

    Raises:
        InsufficientDataError: If fewer than period + 2 prices
    """
    price_array = _windowed(prices, period, required=period + 2)

    changes = np.diff(price_array)
    gains = np.where(changes > 0, changes, 0.0)
    losses = np.where(changes < 0, -changes, 0.0)

    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))

    values = []
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

        if avg_loss == 0:
            values.append(100.0)
        else:
            values.append(100.0 - 100.0 / (1.0 + avg_gain / avg_loss))

    return np.array(values)


def bollinger_bands(
    prices: ArrayLike,
    period: int = BOLLINGER_PERIOD,
    k: float = BOLLINGER_K
) -> Dict[str, np.ndarray]:
    """
    Bollinger Bands around a simple moving average.

    Formula: middle = SMA(period), upper/lower = middle ± k × std(window, ddof=1)

    Args:
        prices: Prices in chronological order
        period: Window size (at least 2 for a sample deviation)
        k: Band width in standard deviations (non-negative)

    Returns:
        Dictionary with 'upper', 'middle', 'lower' arrays of equal length
        (len(prices) - period + 1)
    """
    if period < 2:
        raise DomainError(f"Bollinger period must be at least 2, got {period}")

    if k < 0:
        raise DomainError(f"Band width k must be non-negative, got {k}")

    price_array = _windowed(prices, period)
    windows = sliding_window_view(price_array, period)

    middle = windows.mean(axis=1)
    spread = windows.std(axis=1, ddof=1)
    # Constant windows have exactly zero spread
    spread[np.ptp(windows, axis=1) == 0] = 0.0

    return {
        'upper': middle + k * spread,
        'middle': middle,
        'lower': middle - k * spread
    }


def macd(
    prices: ArrayLike,
    fast: int = MACD_FAST,
    slow: int = MACD_SLOW,
    signal: int = MACD_SIGNAL
) -> Dict[str, np.ndarray]:
    """
    Moving Average Convergence Divergence.

    macd_line[i] = fast_ema[i + (slow - fast)] - slow_ema[i]
    signal_line = EMA(macd_line, signal)
    histogram[i] = macd_line[i + signal - 1] - signal_line[i]

    Args:
        prices: Prices in chronological order
        fast: Fast EMA period (default: 12)
        slow: Slow EMA period (default: 26)
        signal: Signal EMA period (default: 9)

    Returns:
        Dictionary with:
        - macd_line: length len(prices) - slow + 1
        - signal_line: length len(prices) - slow - signal + 2
        - histogram: same length as signal_line

    Raises:
        DomainError: If fast >= slow or a period is below 1
        InsufficientDataError: If fewer than slow + signal - 1 prices
    """
    if min(fast, slow, signal) < 1:
        raise DomainError(f"MACD periods must be at least 1, got {fast}/{slow}/{signal}")

    if fast >= slow:
        raise DomainError(f"Fast period ({fast}) must be shorter than slow period ({slow})")

    price_array = _windowed(prices, slow, required=slow + signal - 1)

    fast_ema = ema(price_array, fast)
    slow_ema = ema(price_array, slow)

    offset = slow - fast
    macd_line = fast_ema[offset:] - slow_ema
    signal_line = ema(macd_line, signal)
    histogram = macd_line[signal - 1:] - signal_line

    return {
        'macd_line': macd_line,
        'signal_line': signal_line,
        'histogram': histogram
    }
