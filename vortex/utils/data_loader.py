"""
===============================================================================
DATA LOADER MODULE
===============================================================================
This module generates sorted synthetic key sets for building and evaluating
the recursive model index.

The DatasetGenerator class provides functions to create datasets in different
distributions:
    • Sequential — evenly spaced numbers (a perfectly linear CDF)
    • Uniform — random floats spread across a range
    • Mixed — clustered/random blend to simulate real-world skew
    • Uniform int64 — random integers over [0, 2**63 - 1)
    • Wide integers — Python ints wider than 64 bits, where float64 regression
      would drop the low-order bits

Every generator takes an optional `rng` (a numpy Generator or an int seed) so
datasets are reproducible.

Usage:
    from vortex.utils.data_loader import DatasetGenerator

    keys = DatasetGenerator.generate_uniform_int64(10_000, rng=42)
    print(keys[:10])  # Preview data
===============================================================================
"""

from typing import List, Optional, Union

import numpy as np

RngLike = Optional[Union[int, np.random.Generator]]

INT64_MAX = np.iinfo(np.int64).max


def _rng(rng: RngLike) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


class DatasetGenerator:
    """Generate sorted key arrays for RMI builds and benchmarks."""

    @staticmethod
    def generate_uniform(size: int, min_val: int = 0, max_val: int = 1_000_000, rng: RngLike = None) -> np.ndarray:
        """Uniformly distributed random float keys."""
        keys = _rng(rng).uniform(min_val, max_val, size)
        return np.sort(keys)

    @staticmethod
    def generate_sequential(size: int, start: int = 0, step: int = 1) -> np.ndarray:
        """Sequential integer keys (start, start + step, …)."""
        return np.arange(start, start + size * step, step, dtype=np.int64)

    @staticmethod
    def generate_mixed(size: int, rng: RngLike = None) -> np.ndarray:
        """Mixed distribution: uniform + two clusters (distinct keys, may be < size)."""
        gen = _rng(rng)
        uniform = gen.uniform(0, 1_000_000, int(size * 0.4))
        cluster1 = gen.normal(250_000, 10_000, int(size * 0.3))
        cluster2 = gen.normal(750_000, 10_000, int(size * 0.3))
        keys = np.concatenate([uniform, cluster1, cluster2])
        return np.sort(np.unique(keys))[:size]

    @staticmethod
    def generate_uniform_int64(size: int, min_val: int = 0, max_val: int = INT64_MAX, rng: RngLike = None) -> np.ndarray:
        """Random int64 keys in [min_val, max_val)."""
        keys = _rng(rng).integers(min_val, max_val, size, dtype=np.int64)
        return np.sort(keys)

    @staticmethod
    def generate_wide_integers(size: int, bits: int = 128, rng: RngLike = None) -> List[int]:
        """Random non-negative Python ints below 2**bits, sorted.

        Built from 32-bit limbs drawn with numpy, so any width works.
        """
        gen = _rng(rng)
        limbs = -(-bits // 32)
        chunks = gen.integers(0, 2 ** 32, size=(size, limbs), dtype=np.uint64)
        keys = []
        for row in chunks.tolist():
            value = 0
            for limb in row:
                value = (value << 32) | limb
            keys.append(value >> (limbs * 32 - bits))
        keys.sort()
        return keys
