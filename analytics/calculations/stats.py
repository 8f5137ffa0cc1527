"""
Descriptive statistics primitives.
Sample (n-1) conventions throughout; constant inputs are detected exactly
so zero-variance guards never depend on floating-point noise.
"""

import numpy as np
import math
from typing import Sequence, Union

from analytics.errors import InsufficientDataError, DomainError

ArrayLike = Union[Sequence[float], np.ndarray]


def to_array(values: ArrayLike, name: str = "values") -> np.ndarray:
    """
    Convert a numeric sequence to a float64 array.

    Args:
        values: List, tuple or array of numbers
        name: Label used in error messages

    Returns:
        One-dimensional float64 array (a copy; the input is never mutated)

    Raises:
        DomainError: If the input is not one-dimensional or holds NaN/inf
    """
    arr = np.array(values, dtype=np.float64)

    if arr.ndim != 1:
        raise DomainError(f"{name} must be a one-dimensional sequence")

    if arr.size and not np.all(np.isfinite(arr)):
        raise DomainError(f"NaN or infinite values not allowed in {name}")

    return arr


def is_constant(arr: np.ndarray) -> bool:
    """True when every element is identical (zero spread)."""
    return arr.size > 0 and float(np.ptp(arr)) == 0.0


def mean(values: ArrayLike) -> float:
    """Arithmetic mean."""
    arr = to_array(values)
    if arr.size == 0:
        raise InsufficientDataError("Insufficient data: need at least 1 value for mean")
    return float(np.mean(arr))


def median(values: ArrayLike) -> float:
    """Median; mean of the two middle values for even lengths."""
    arr = to_array(values)
    if arr.size == 0:
        raise InsufficientDataError("Insufficient data: need at least 1 value for median")
    return float(np.median(arr))


def sample_variance(values: ArrayLike) -> float:
    """
    Sample variance (Bessel-corrected), two-pass.

    Formula: s² = Σ(x - x̄)² / (n - 1)

    Raises:
        InsufficientDataError: If fewer than 2 values
    """
    arr = to_array(values)
    if arr.size < 2:
        raise InsufficientDataError(
            f"Insufficient data: need at least 2 values for sample variance, have {arr.size}"
        )

    if is_constant(arr):
        return 0.0

    deviations = arr - np.mean(arr)
    return float(np.sum(deviations ** 2) / (arr.size - 1))


def sample_std(values: ArrayLike) -> float:
    """Sample standard deviation (ddof=1)."""
    return math.sqrt(sample_variance(values))


def covariance(x: ArrayLike, y: ArrayLike) -> float:
    """
    Sample covariance between two equal-length series.

    Formula: cov = Σ(x - x̄)(y - ȳ) / (n - 1)

    Raises:
        DomainError: If lengths differ
        InsufficientDataError: If fewer than 2 observations
    """
    x_arr = to_array(x, "x")
    y_arr = to_array(y, "y")

    if x_arr.size != y_arr.size:
        raise DomainError(
            f"Series must have same length for covariance: {x_arr.size} != {y_arr.size}"
        )

    if x_arr.size < 2:
        raise InsufficientDataError(
            f"Insufficient data: need at least 2 observations for covariance, have {x_arr.size}"
        )

    x_dev = x_arr - np.mean(x_arr)
    y_dev = y_arr - np.mean(y_arr)
    return float(np.sum(x_dev * y_dev) / (x_arr.size - 1))


def correlation(x: ArrayLike, y: ArrayLike) -> float:
    """
    Pearson correlation coefficient.

    Returns 0.0 when either series is constant (correlation undefined).
    The result is clipped to [-1, 1] to absorb rounding error.

    Raises:
        DomainError: If lengths differ
        InsufficientDataError: If fewer than 2 observations
    """
    x_arr = to_array(x, "x")
    y_arr = to_array(y, "y")

    cov = covariance(x_arr, y_arr)

    if is_constant(x_arr) or is_constant(y_arr):
        return 0.0

    denom = math.sqrt(sample_variance(x_arr)) * math.sqrt(sample_variance(y_arr))
    if denom == 0.0:
        return 0.0

    return float(min(1.0, max(-1.0, cov / denom)))


def skewness(values: ArrayLike) -> float:
    """
    Sample skewness, adjusted Fisher-Pearson coefficient (G1).

    Formula: G1 = n / ((n-1)(n-2)) × Σ((x - x̄) / s)³

    Raises:
        InsufficientDataError: If fewer than 3 values
    """
    arr = to_array(values)
    n = arr.size
    if n < 3:
        raise InsufficientDataError(
            f"Insufficient data: need at least 3 values for skewness, have {n}"
        )

    if is_constant(arr):
        return 0.0

    s = math.sqrt(sample_variance(arr))
    standardized = (arr - np.mean(arr)) / s
    return float(n / ((n - 1) * (n - 2)) * np.sum(standardized ** 3))


def kurtosis(values: ArrayLike) -> float:
    """
    Sample excess kurtosis (G2), zero for a normal distribution.

    Formula:
        G2 = n(n+1) / ((n-1)(n-2)(n-3)) × Σ((x - x̄) / s)⁴
             - 3(n-1)² / ((n-2)(n-3))

    Raises:
        InsufficientDataError: If fewer than 4 values
    """
    arr = to_array(values)
    n = arr.size
    if n < 4:
        raise InsufficientDataError(
            f"Insufficient data: need at least 4 values for kurtosis, have {n}"
        )

    if is_constant(arr):
        return 0.0

    s = math.sqrt(sample_variance(arr))
    standardized = (arr - np.mean(arr)) / s
    leading = n * (n + 1) / ((n - 1) * (n - 2) * (n - 3))
    correction = 3 * (n - 1) ** 2 / ((n - 2) * (n - 3))
    return float(leading * np.sum(standardized ** 4) - correction)
