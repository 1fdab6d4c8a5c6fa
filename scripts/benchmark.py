#!/usr/bin/env python3
"""Timing runs for the swarm hot paths on synthetic price histories.

Two scenarios are measured for every portfolio size:

* ``fitness``: one thousand evaluator calls on the equal-weight allocation.
* ``search``: a fixed-budget search, once serially and once with a thread pool
  for fitness evaluation. Both runs share a seed and must return the same
  allocation.

Usage::

    python scripts/benchmark.py --sizes 5 25 100
    python scripts/benchmark.py --output timings.json
    python scripts/benchmark.py --baseline timings.json
"""

from __future__ import annotations

import argparse
import timeit
from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from qswarm.context import build_context
from qswarm.models import OptimizationContext
from qswarm.optimization import FitnessEvaluator, QuantumSwarmOptimizer

KEY_COLUMNS = ["scenario", "assets", "variant"]
SEARCH_PARTICLES = 50
SEARCH_ITERATIONS = 100


def synthetic_context(assets: int, days: int = 252, seed: int = 42) -> OptimizationContext:
    """Geometric random-walk prices for *assets* symbols, turned into a context."""

    rng = np.random.default_rng(seed + assets)
    log_steps = rng.normal(loc=0.0005, scale=0.01, size=(days, assets))
    prices = pd.DataFrame(
        100.0 * np.exp(np.cumsum(log_steps, axis=0)),
        index=pd.bdate_range("2020-01-01", periods=days),
        columns=[f"SYM{idx:03d}" for idx in range(assets)],
    )
    return build_context(prices)


def _best_of(statement, repeats: int) -> float:
    # One untimed call warms numpy and the thread pool.
    statement()
    return min(timeit.repeat(statement, number=1, repeat=repeats))


def time_fitness(context: OptimizationContext, repeats: int) -> dict[str, object]:
    evaluator = FitnessEvaluator(context.historical_data, context.constraints)
    allocation = np.full(context.dimension, 1.0 / context.dimension)
    seconds = _best_of(lambda: [evaluator(allocation) for _ in range(1_000)], repeats)
    return {"scenario": "fitness", "assets": context.dimension, "variant": "x1000", "seconds": seconds}


def time_search(context: OptimizationContext, repeats: int, workers: int) -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    allocations: dict[str, np.ndarray] = {}
    for variant, max_workers in (("serial", None), (f"threads_{workers}", workers)):
        optimizer = QuantumSwarmOptimizer(
            SEARCH_PARTICLES,
            SEARCH_ITERATIONS,
            0.0,
            seed=7,
            max_workers=max_workers,
            drawdown_basis="equity",
        )
        allocations[variant] = np.asarray(optimizer.optimize(context).allocation)
        seconds = _best_of(lambda: optimizer.optimize(context), repeats)
        rows.append({"scenario": "search", "assets": context.dimension, "variant": variant, "seconds": seconds})

    serial, threaded = allocations.values()
    if not np.array_equal(serial, threaded):
        raise RuntimeError(f"Threaded search diverged from serial search on {context.dimension} assets")
    return rows


def run(sizes: Sequence[int], repeats: int, workers: int) -> pd.DataFrame:
    rows: list[dict[str, object]] = []
    for assets in sizes:
        context = synthetic_context(assets)
        rows.append(time_fitness(context, repeats))
        rows.extend(time_search(context, repeats, workers))
    return pd.DataFrame(rows, columns=[*KEY_COLUMNS, "seconds"]).sort_values(KEY_COLUMNS, ignore_index=True)


def compare(timings: pd.DataFrame, baseline: pd.DataFrame) -> pd.DataFrame:
    """Join *baseline* seconds onto *timings* and derive the speed-up column."""

    merged = timings.merge(
        baseline[[*KEY_COLUMNS, "seconds"]].rename(columns={"seconds": "baseline"}),
        on=KEY_COLUMNS,
        how="left",
    )
    merged["speedup"] = merged["baseline"] / merged["seconds"].replace(0.0, np.nan)
    return merged


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Time the QSwarm fitness and search loops.")
    parser.add_argument("--sizes", type=int, nargs="+", default=[5, 25, 100], help="Portfolio sizes (default: 5 25 100).")
    parser.add_argument("--repeats", type=int, default=3, help="Timed repetitions; the fastest is kept (default: 3).")
    parser.add_argument("--workers", type=int, default=4, help="Threads for the pooled search (default: 4).")
    parser.add_argument("--baseline", type=Path, help="Earlier --output file to compare against.")
    parser.add_argument("--output", type=Path, help="Write timings as JSON records.")
    args = parser.parse_args(argv)

    timings = run(args.sizes, args.repeats, args.workers)
    report = timings
    if args.baseline and args.baseline.exists():
        report = compare(timings, pd.read_json(args.baseline, orient="records"))

    print(report.to_string(index=False, float_format=lambda value: f"{value:.6f}"))

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        timings.to_json(args.output, orient="records", indent=2)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
