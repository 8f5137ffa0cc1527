"""
Cross-series alignment utilities.

Series of unequal length are truncated to the shortest one and combined
index-for-index from position 0. Positions are NOT matched by calendar date:
callers must supply series that already share a common start. Pass
strict=True to reject unequal lengths instead of truncating.
"""

import logging
import numpy as np
from typing import Dict, List, Optional, Sequence, Tuple

from analytics.calculations.stats import ArrayLike, to_array, correlation
from analytics.errors import AlignmentError, DomainError

logger = logging.getLogger(__name__)


def truncate_to_common_length(
    series: Sequence[ArrayLike],
    strict: bool = False
) -> List[np.ndarray]:
    """
    Truncate every series to the minimum length among them.

    Args:
        series: Sequence of numeric series
        strict: Raise instead of truncating when lengths differ

    Returns:
        List of arrays, all of the common length, each starting at its
        own position 0

    Raises:
        AlignmentError: If strict and the lengths differ
    """
    arrays = [to_array(s, "series") for s in series]

    if not arrays:
        return []

    lengths = [a.size for a in arrays]
    common = min(lengths)

    if common != max(lengths):
        if strict:
            raise AlignmentError(f"Series lengths differ under strict alignment: {lengths}")
        logger.debug(
            f"Truncating {len(arrays)} series to common length {common} "
            f"(discarding {[n - common for n in lengths]} trailing values)"
        )

    return [a[:common] for a in arrays]


def align_pair(
    x: ArrayLike,
    y: ArrayLike,
    strict: bool = False
) -> Tuple[np.ndarray, np.ndarray]:
    """Truncate two series to their common length from the start."""
    x_arr, y_arr = truncate_to_common_length([x, y], strict=strict)
    return x_arr, y_arr


def weighted_portfolio_returns(
    return_series: Sequence[ArrayLike],
    weights: Optional[Sequence[float]] = None,
    strict: bool = False
) -> np.ndarray:
    """
    Combine several return series into one weighted portfolio series.

    Formula: R_p,i = Σ_j w_j × R_j,i   over the common length

    Args:
        return_series: One return series per holding
        weights: Weight per holding (equal weights when omitted)
        strict: Reject unequal lengths instead of truncating

    Returns:
        Numpy array of portfolio returns (length = shortest input)

    Raises:
        DomainError: If no series are given or weights do not match
        AlignmentError: If strict and the lengths differ
    """
    if len(return_series) == 0:
        raise DomainError("At least one return series is required")

    if weights is None:
        weights = [1.0 / len(return_series)] * len(return_series)

    weight_array = to_array(weights, "weights")

    if weight_array.size != len(return_series):
        raise DomainError(
            f"Number of weights ({weight_array.size}) must match "
            f"number of series ({len(return_series)})"
        )

    aligned = truncate_to_common_length(return_series, strict=strict)
    matrix = np.vstack(aligned)
    return weight_array @ matrix


def correlation_matrix(
    series_map: Dict[str, ArrayLike],
    strict: bool = False
) -> Dict[str, Dict[str, float]]:
    """
    Build a pairwise Pearson correlation matrix.

    Each pair is truncated independently to its own common length. The
    diagonal is exactly 1.0 and the matrix is symmetric.

    Args:
        series_map: Mapping of name to numeric series (usually returns)
        strict: Reject unequal lengths instead of truncating

    Returns:
        Nested dict matrix[a][b] -> correlation
    """
    names = list(series_map.keys())
    arrays = {name: to_array(series_map[name], name) for name in names}
    matrix: Dict[str, Dict[str, float]] = {name: {} for name in names}

    for i, left in enumerate(names):
        matrix[left][left] = 1.0
        for right in names[i + 1:]:
            x, y = align_pair(arrays[left], arrays[right], strict=strict)
            value = correlation(x, y)
            matrix[left][right] = value
            matrix[right][left] = value

    return matrix
