"""
Guardrails for the analytics engine - validation and safety checks.
Rejects unusable inputs before analysis and non-finite values after it.
"""

import math
import warnings
import numpy as np
from typing import Dict, Any, Sequence, Union

# Fewer points than this still compute, but annualized figures are noisy
RECOMMENDED_MIN_POINTS = 30


class DataQualityError(Exception):
    """Raised when data quality issues require user intervention."""
    pass


class DataQualityWarning(UserWarning):
    """Raised when data quality issues should be noted but don't block execution."""
    pass


def validate_price_series(
    prices: Union[Sequence[float], np.ndarray],
    min_points: int = 3,
    name: str = "prices"
) -> None:
    """
    Validate a price series before analysis.

    Args:
        prices: Prices in chronological order
        min_points: Minimum number of prices required
        name: Label used in messages

    Raises:
        DataQualityError: If too short, non-finite or non-positive
    """
    price_array = np.asarray(prices, dtype=np.float64)

    if price_array.size < min_points:
        raise DataQualityError(
            f"Insufficient data for {name}: have {price_array.size} points, "
            f"need at least {min_points}"
        )

    if not np.all(np.isfinite(price_array)):
        raise DataQualityError(f"NaN or infinite price found in {name}")

    if np.any(price_array <= 0):
        raise DataQualityError(f"Zero or negative price found in {name}")

    if price_array.size < RECOMMENDED_MIN_POINTS:
        warnings.warn(
            f"Limited data for {name}: have {price_array.size} points, "
            f"recommend at least {RECOMMENDED_MIN_POINTS} for reliable metrics.",
            DataQualityWarning
        )


def validate_summary(summary: Dict[str, Any]) -> None:
    """
    Validate that every metric in a summary is finite or None.

    Args:
        summary: Flat or nested metrics dictionary

    Raises:
        DataQualityError: If NaN or infinite values found
    """
    def check_value(value, path: str):
        if value is None or isinstance(value, bool):
            return

        if isinstance(value, dict):
            for key, nested in value.items():
                check_value(nested, f'{path}.{key}' if path else str(key))
            return

        if isinstance(value, (int, float, np.floating)):
            if math.isnan(value):
                raise DataQualityError(f"NaN value found in {path}")
            if math.isinf(value):
                raise DataQualityError(f"Infinite value found in {path}")

    check_value(summary, '')

    corr = summary.get('correlation')
    if corr is not None and not (-1.0 <= corr <= 1.0):
        raise DataQualityError(f"Correlation out of bounds: {corr}")
