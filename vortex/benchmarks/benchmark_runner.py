"""
===============================================================================
RMI BENCHMARK
===============================================================================
Builds recursive model indexes over a key set for a grid of (width, depth)
settings and reports, per setting:
    • build time (ms)
    • mean lookup time (ns per GetIndex call)
    • mean / max position error over sampled training keys
    • model size (KB, coefficients only)

The index only estimates positions; position_error measures how far an
estimate is from the key's true position in the sorted array.

Usage:
    from vortex.benchmarks.benchmark_runner import Benchmark, BenchmarkConfig
    from vortex.utils.data_loader import DatasetGenerator

    keys = DatasetGenerator.generate_uniform_int64(10_000, rng=0)
    Benchmark.run("Uniform int64", keys, BenchmarkConfig(widths=(10, 100)))
===============================================================================
"""

import bisect
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np

from vortex.indexes.rmi import RecursiveModelIndex

logger = logging.getLogger(__name__)


@dataclass
class BenchmarkConfig:
    widths: Tuple[int, ...] = (10,)
    depths: Tuple[int, ...] = (2,)
    num_queries: int = 20
    # largest acceptable distance (in positions) between estimate and key
    error_threshold: int = 200
    seed: Optional[int] = None


def position_error(keys: Sequence, key, index: int) -> int:
    """Distance from ``index`` to the nearest position holding ``key``.

    For a key that is not in ``keys`` the distance is to its insertion point.
    """
    lo = bisect.bisect_left(keys, key)
    hi = bisect.bisect_right(keys, key)
    if lo == hi:
        return abs(index - lo)
    if index < lo:
        return lo - index
    if index >= hi:
        return index - (hi - 1)
    return 0


class Benchmark:
    """Build/lookup timing and accuracy for the recursive model index."""

    @staticmethod
    def measure_build_time(keys, width: int, depth: int) -> Tuple[RecursiveModelIndex, float]:
        start = time.perf_counter()
        rmi = RecursiveModelIndex.build_from_sorted_array(keys, width, depth)
        end = time.perf_counter()
        return rmi, (end - start) * 1000  # ms

    @staticmethod
    def measure_lookup_time(index: RecursiveModelIndex, queries: Sequence) -> float:
        # Warmup
        for q in queries[:50]:
            index.get_index(q)
        start = time.perf_counter()
        for q in queries:
            index.get_index(q)
        end = time.perf_counter()
        return (end - start) * 1e9 / max(1, len(queries))  # ns per query

    @staticmethod
    def measure_accuracy(index: RecursiveModelIndex, keys: Sequence, positions: Sequence[int]) -> Dict[str, float]:
        """Position errors for the keys stored at ``positions``."""
        errors = np.array(
            [position_error(keys, keys[p], index.get_index(keys[p])) for p in positions],
            dtype=np.int64,
        )
        if errors.size == 0:
            return {"mean_error": 0.0, "max_error": 0, "p95_error": 0.0}
        return {
            "mean_error": float(np.mean(errors)),
            "max_error": int(np.max(errors)),
            "p95_error": float(np.percentile(errors, 95)),
        }

    @staticmethod
    def run(dataset_name: str, keys: Sequence, config: Optional[BenchmarkConfig] = None) -> Dict[str, dict]:
        config = config or BenchmarkConfig()
        rng = np.random.default_rng(config.seed)

        print(f"\n{'='*70}")
        print(f"Dataset: {dataset_name}  ({len(keys):,} keys)")
        print(f"{'='*70}")

        # Query only stored keys so every error has a true position
        positions = rng.integers(0, len(keys), config.num_queries).tolist()
        queries = [keys[p] for p in positions]

        results = {}
        for depth in config.depths:
            for width in config.widths:
                rmi, build = Benchmark.measure_build_time(keys, width, depth)
                lookup = Benchmark.measure_lookup_time(rmi, queries)
                accuracy = Benchmark.measure_accuracy(rmi, keys, positions)
                mem = rmi.get_memory_usage() / 1024

                print(f"Width {width:<5} Depth {depth:<2} | Build: {build:>9.2f} ms | "
                      f"Lookup: {lookup:>9.2f} ns | Mem: {mem:>9.2f} KB | "
                      f"Err mean/p95/max: {accuracy['mean_error']:.1f}/"
                      f"{accuracy['p95_error']:.1f}/{accuracy['max_error']}")

                if accuracy["max_error"] > config.error_threshold:
                    logger.warning(
                        "%s width=%d depth=%d: max error %d exceeds threshold %d",
                        dataset_name, width, depth, accuracy["max_error"], config.error_threshold,
                    )

                results[f"RMI_w{width}_d{depth}"] = {
                    "width": width,
                    "depth": depth,
                    "build_ms": build,
                    "lookup_ns": lookup,
                    "memory_kb": mem,
                    "within_threshold": accuracy["max_error"] <= config.error_threshold,
                    **accuracy,
                }
        return results


def plot_predictions(keys: Sequence, index: RecursiveModelIndex, path, title: str = "RMI predictions",
                     max_points: int = 5000) -> Path:
    """Save a plot of true vs. predicted position for (a sample of) the keys."""
    n = len(keys)
    positions = np.unique(np.linspace(0, n - 1, num=min(n, max_points), dtype=np.int64))
    predicted = [index.get_index(keys[p]) for p in positions.tolist()]

    fig = plt.figure(figsize=(10, 4))
    plt.plot(positions, positions, "-", linewidth=1, label="true position")
    plt.plot(positions, predicted, ".", markersize=1, label="predicted")
    plt.title(f"{title} (width={index.width}, depth={index.depth})")
    plt.xlabel("Index")
    plt.ylabel("Predicted index")
    plt.legend()
    plt.tight_layout()

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path)
    plt.close(fig)
    return path
