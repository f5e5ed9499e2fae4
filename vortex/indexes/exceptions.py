"""Errors raised by the learned index structures."""


class InputError(ValueError):
    """Keys (or build parameters) that an index cannot be built from."""


class DegenerateModelError(ArithmeticError):
    """A linear model cannot be fit to the given samples.

    Raised by the regression engine for fewer than two samples or for samples
    whose keys are all identical. Index construction recovers from it locally.
    """
