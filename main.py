import argparse
import logging

from vortex.benchmarks.benchmark_runner import Benchmark, BenchmarkConfig, plot_predictions
from vortex.indexes.rmi import RecursiveModelIndex
from vortex.utils.data_loader import DatasetGenerator


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Recursive model index benchmark")
    parser.add_argument("--size", type=int, default=10_000, help="keys per dataset")
    parser.add_argument("--width", type=int, action="append", help="RMI width (repeatable, default 10)")
    parser.add_argument("--depth", type=int, action="append", help="RMI depth (repeatable, default 2)")
    parser.add_argument("--queries", type=int, default=1000, help="sampled keys per configuration")
    parser.add_argument("--threshold", type=int, default=200, help="max acceptable position error")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--plot", metavar="DIR", default=None, help="save prediction plots to DIR")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = BenchmarkConfig(
        widths=tuple(args.width or (10,)),
        depths=tuple(args.depth or (2,)),
        num_queries=args.queries,
        error_threshold=args.threshold,
        seed=args.seed,
    )
    size = args.size

    print("🧠 Recursive Model Index Benchmark\n")
    print("#"*70)
    print(f"Testing {size:,} keys")
    print("#"*70)

    datasets = [
        ("Sequential", DatasetGenerator.generate_sequential(size)),
        ("Uniform", DatasetGenerator.generate_uniform(size, rng=args.seed)),
        ("Mixed", DatasetGenerator.generate_mixed(size, rng=args.seed)),
        ("Uniform int64", DatasetGenerator.generate_uniform_int64(size, rng=args.seed)),
        ("Wide 128-bit", DatasetGenerator.generate_wide_integers(size, bits=128, rng=args.seed)),
    ]

    for name, keys in datasets:
        Benchmark.run(name, keys, config)
        if args.plot:
            rmi = RecursiveModelIndex.build_from_sorted_array(keys, config.widths[0], config.depths[0])
            slug = name.lower().replace(" ", "_")
            path = plot_predictions(keys, rmi, f"{args.plot}/{slug}.png", title=name)
            print(f"Plot saved to {path}")


if __name__ == "__main__":
    main()
