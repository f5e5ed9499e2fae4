"""
===============================================================================
EXACT LINEAR REGRESSION
===============================================================================
Ordinary least squares over (key, rank) samples, computed with exact rational
arithmetic. Keys can be 64-bit (or wider) integers; a float64 fit loses the low
bits that separate neighbouring keys near the mean, so every step here
(mean, covariance, variance, the final division) stays exact.

    slope         = covariance(keys, ranks) / variance(keys)
    intercept     = mean(ranks) - mean(keys) * slope
    zero_crossing = -intercept / slope

Usage:
    from vortex.indexes.regression import fit

    line = fit([10, 20, 30], [0, 1, 2])
    print(line.slope, line.intercept)   # 1/10 -1
===============================================================================
"""

from fractions import Fraction
from numbers import Rational
from typing import NamedTuple, Sequence

import numpy as np

from vortex.indexes.exceptions import DegenerateModelError


class LinearFit(NamedTuple):
    intercept: Fraction
    slope: Fraction
    zero_crossing: Fraction


def to_exact(value):
    """Convert a numeric key to an exact ``int`` or ``Fraction``.

    Raises ValueError / OverflowError for NaN and infinities, TypeError for
    non-numeric values.
    """
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, (str, bytes)):
        raise TypeError(f"not a numeric key: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, Rational):
        return Fraction(value.numerator, value.denominator)
    if isinstance(value, np.floating):
        # longdouble survives .item() unchanged
        return Fraction(*value.as_integer_ratio())
    return Fraction(value)


def mean(values: Sequence) -> Fraction:
    return Fraction(sum(values), len(values))


def covariance(xs: Sequence, ys: Sequence, mean_x: Fraction, mean_y: Fraction) -> Fraction:
    """Sum of centered products (not divided by n).

    Uses sum(x*y) - n*mean_x*mean_y, which is identical to the centered sum in
    exact arithmetic and keeps integer inputs in integer arithmetic.
    """
    n = len(xs)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    return sum_xy - n * mean_x * mean_y


def variance(values: Sequence, mean_value: Fraction) -> Fraction:
    """Sum of squared deviations from ``mean_value`` (not divided by n)."""
    n = len(values)
    sum_sq = sum(v * v for v in values)
    return sum_sq - n * mean_value * mean_value


def fit(keys: Sequence, ranks: Sequence) -> LinearFit:
    """Fit ``rank ≈ slope * key + intercept`` by least squares.

    Args:
        keys: exact keys (ints or Fractions), see ``to_exact``.
        ranks: integer ranks, same length as ``keys``.
    Returns:
        LinearFit(intercept, slope, zero_crossing)
    Raises:
        ValueError: keys and ranks differ in length.
        DegenerateModelError: fewer than two samples or all keys identical
            (zero variance).
    """
    if len(keys) != len(ranks):
        raise ValueError(
            f"keys and ranks differ in length ({len(keys)} != {len(ranks)})"
        )
    if len(keys) < 2:
        raise DegenerateModelError(f"need at least 2 samples, got {len(keys)}")

    mean_x = mean(keys)
    mean_y = mean(ranks)

    var_x = variance(keys, mean_x)
    if var_x == 0:
        raise DegenerateModelError("all keys are identical (zero variance)")

    slope = covariance(keys, ranks, mean_x, mean_y) / var_x
    intercept = mean_y - mean_x * slope

    # slope is 0 only for unsorted samples
    zero_crossing = -intercept / slope if slope != 0 else Fraction(0)

    return LinearFit(intercept, slope, zero_crossing)
