"""Tests for the exact regression engine."""

from decimal import Decimal
from fractions import Fraction

import numpy as np
import pytest

from vortex.indexes.exceptions import DegenerateModelError
from vortex.indexes.regression import covariance, fit, mean, to_exact, variance


class TestStatistics:
    """Tests for mean / covariance / variance."""

    def test_mean_is_exact(self) -> None:
        """Test mean of ints keeps the fractional part."""
        assert mean([1, 2]) == Fraction(3, 2)

    def test_variance_sum_of_squares(self) -> None:
        """Test variance is the sum of squared deviations."""
        values = [1, 2, 3, 4]
        assert variance(values, mean(values)) == Fraction(5)

    def test_covariance(self) -> None:
        """Test covariance against the centered definition."""
        xs = [1, 3, 4, 8]
        ys = [0, 1, 2, 3]
        mx, my = mean(xs), mean(ys)
        expected = sum((x - mx) * (y - my) for x, y in zip(xs, ys))
        assert covariance(xs, ys, mx, my) == expected


class TestFit:
    """Tests for fit()."""

    def test_perfect_line(self) -> None:
        """Test evenly spaced keys give an exact line."""
        line = fit([10, 20, 30, 40], [0, 1, 2, 3])
        assert line.slope == Fraction(1, 10)
        assert line.intercept == -1
        assert line.zero_crossing == 10

    def test_offset_ranks(self) -> None:
        """Test a sub-range whose ranks do not start at 0."""
        line = fit([500, 510, 520], range(50, 53))
        assert line.slope * 510 + line.intercept == 51

    def test_large_keys_keep_low_bits(self) -> None:
        """Test keys that float64 cannot tell apart are fit exactly."""
        base = 2 ** 62
        keys = [base + 1, base + 2, base + 3]
        line = fit(keys, [0, 1, 2])
        assert line.slope == 1
        assert line.intercept == -(base + 1)
        assert float(base + 1) == float(base + 2)

    def test_wide_integer_keys(self) -> None:
        """Test keys beyond 64 bits."""
        keys = [2 ** 100 + i * 7 for i in range(5)]
        line = fit(keys, range(5))
        assert line.slope * keys[3] + line.intercept == 3

    def test_float_keys(self) -> None:
        """Test float keys are converted exactly."""
        keys = [to_exact(k) for k in (0.5, 1.5, 2.5)]
        line = fit(keys, [0, 1, 2])
        assert line.slope == 1
        assert line.intercept == Fraction(-1, 2)

    def test_too_few_samples(self) -> None:
        """Test a single sample cannot be fit."""
        with pytest.raises(DegenerateModelError, match="at least 2"):
            fit([5], [0])

    def test_zero_variance(self) -> None:
        """Test identical keys raise instead of dividing by zero."""
        with pytest.raises(DegenerateModelError, match="zero variance"):
            fit([7, 7, 7], [0, 1, 2])

    def test_length_mismatch(self) -> None:
        """Test mismatched keys and ranks are a caller error, not a degenerate fit."""
        with pytest.raises(ValueError, match="differ in length") as excinfo:
            fit([1, 2, 3], [0, 1])
        assert not isinstance(excinfo.value, DegenerateModelError)


class TestToExact:
    """Tests for key conversion."""

    def test_numpy_scalars(self) -> None:
        """Test numpy scalars become Python numbers."""
        assert to_exact(np.int64(42)) == 42
        assert isinstance(to_exact(np.int64(42)), int)
        assert to_exact(np.float64(0.25)) == Fraction(1, 4)

    def test_longdouble(self) -> None:
        """Test extended-precision numpy floats convert exactly."""
        assert to_exact(np.longdouble(0.75)) == Fraction(3, 4)
        assert to_exact(np.longdouble(50)) == 50
        with pytest.raises(OverflowError):
            to_exact(np.longdouble("inf"))
        with pytest.raises(ValueError):
            to_exact(np.longdouble("nan"))

    def test_decimal(self) -> None:
        """Test Decimal keys."""
        assert to_exact(Decimal("1.1")) == Fraction(11, 10)

    def test_non_finite(self) -> None:
        """Test NaN and infinity are rejected."""
        with pytest.raises(ValueError):
            to_exact(float("nan"))
        with pytest.raises(OverflowError):
            to_exact(float("inf"))

    def test_string_rejected(self) -> None:
        """Test strings are not treated as numbers."""
        with pytest.raises(TypeError):
            to_exact("5")
