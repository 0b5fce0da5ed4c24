"""
Statistics Helpers
==================
Small, dependency-free summary statistics shared by the reducers.
"""

import math
from collections.abc import Sequence
from decimal import Decimal
from statistics import fmean, median as _median


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sample."""
    return fmean(values) if values else 0.0


def median(values: Sequence[float]) -> float:
    """Middle value, averaging the two middle values for even counts."""
    return float(_median(values)) if values else 0.0


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Nearest-rank percentile over an ascending sample.

    The value at index floor(n * p), clamped to the last element.
    No interpolation between ranks. 0.0 for an empty sample.
    """
    if not sorted_values:
        return 0.0
    index = min(max(math.floor(len(sorted_values) * p), 0), len(sorted_values) - 1)
    return float(sorted_values[index])


def growth_percentage(previous: float | Decimal, current: float | Decimal) -> float:
    """
    Percentage change from previous to current.

    Defined as 0.0 when previous is zero (or negative), never inf/NaN.
    """
    if previous <= 0:
        return 0.0
    return float((current - previous) / previous * 100)
