"""Command line interface for QSwarm."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

from qswarm import workflows
from qswarm.config import get_settings
from qswarm.context import build_context, read_price_history
from qswarm.exceptions import InvalidConfigError, QSwarmError
from qswarm.logging_utils import configure_logging
from qswarm.metrics import DRAWDOWN_BASES
from qswarm.models import OptimizationConstraints, RiskBudget
from qswarm.optimization.fitness import evaluate_fitness
from qswarm.optimization.weights import normalize_allocation


def _resolve(path: Path | str | None, default: Path) -> Path:
    """Expand user paths and fall back to a default when *path* is ``None``."""

    if path is None:
        return default
    return Path(path).expanduser().resolve()


def _constraints_from_args(args: argparse.Namespace) -> OptimizationConstraints:
    return OptimizationConstraints(
        min_allocation=args.min_allocation,
        max_allocation=args.max_allocation,
        min_positions=args.min_positions,
        max_positions=args.max_positions,
        risk_budget=RiskBudget(
            max_volatility=args.max_volatility,
            max_drawdown=args.max_drawdown,
            min_sharpe_ratio=args.min_sharpe,
        ),
    )


def _summarise_reports(reports: Iterable[workflows.PortfolioReport]) -> None:
    """Print optimisation summaries in a stable order."""

    for report in sorted(reports, key=lambda item: item.name):
        print(report.summary)
        for violation in report.result.violations:
            print(f"  ! {violation.message}")


def _portfolio_name(path: Path) -> str:
    stem = path.stem
    if stem.endswith(workflows.COLLATED_SUFFIX):
        return stem[: -len(workflows.COLLATED_SUFFIX)]
    return stem


def _handle_optimise(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.log_dir or args.log_level:
        try:
            configure_logging(
                Path(args.log_dir) if args.log_dir else None,
                args.log_level,
                run_name=args.name or (_portfolio_name(Path(args.input)) if args.input else None),
            )
        except InvalidConfigError as exc:
            print(f"Invalid logging configuration: {exc}")
            return 1

    output_dir = None if args.no_export else _resolve(args.output_dir, settings.export_dir)
    constraints = _constraints_from_args(args)

    try:
        optimizer = workflows.build_optimizer(
            settings,
            particles=args.particles,
            iterations=args.iterations,
            convergence_threshold=args.threshold,
            seed=args.seed,
            max_workers=args.workers,
            drawdown_basis=args.drawdown,
        )
    except QSwarmError as exc:
        print(f"Invalid optimizer configuration: {exc}")
        return 1

    if args.input:
        path = Path(args.input).expanduser()
        try:
            report = workflows.optimise_price_file(
                args.name or _portfolio_name(path),
                path,
                output_dir=output_dir,
                constraints=constraints,
                optimizer=optimizer,
                make_plot=args.plot,
                compare_classical=args.compare_classical,
            )
        except FileNotFoundError as exc:
            print(str(exc))
            return 1
        except QSwarmError as exc:
            print(f"Optimisation failed: {exc}")
            return 1
        reports = [report]
    else:
        collated_dir = _resolve(args.collated_dir, settings.export_dir)
        results = workflows.optimise_all_portfolios(
            collated_dir,
            portfolio_names=args.portfolios,
            output_dir=output_dir,
            constraints=constraints,
            optimizer=optimizer,
            make_plot=args.plot,
            compare_classical=args.compare_classical,
        )
        if not results:
            print(f"No portfolios optimised. Ensure *_collated.csv files exist in {collated_dir}.")
            return 1
        reports = list(results.values())

    _summarise_reports(reports)
    if output_dir is not None:
        print(f"Artefacts written to {output_dir}")
    return 0


def _parse_weights(pairs: Sequence[str]) -> dict[str, float]:
    weights: dict[str, float] = {}
    for pair in pairs:
        symbol, sep, raw = pair.partition("=")
        if not sep or not symbol:
            raise ValueError(f"Expected SYMBOL=WEIGHT, got {pair!r}")
        weights[symbol] = float(raw)
    return weights


def _handle_evaluate(args: argparse.Namespace) -> int:
    try:
        weights = _parse_weights(args.weights)
    except ValueError as exc:
        print(str(exc))
        return 1

    try:
        context = build_context(
            read_price_history(Path(args.input).expanduser()),
            constraints=_constraints_from_args(args),
        )
    except FileNotFoundError as exc:
        print(str(exc))
        return 1
    except QSwarmError as exc:
        print(f"Unable to build context: {exc}")
        return 1

    unknown = sorted(set(weights) - set(context.symbols))
    if unknown:
        print("Unknown symbols:")
        for item in unknown:
            print(f"  - {item}")
        return 1

    raw = np.array([weights.get(symbol, 0.0) for symbol in context.symbols])
    try:
        allocation = normalize_allocation(np.clip(raw, 0.0, None))
        breakdown = evaluate_fitness(allocation, context.historical_data, context.constraints)
    except QSwarmError as exc:
        print(f"Evaluation failed: {exc}")
        return 1

    for symbol, weight in zip(context.symbols, allocation):
        print(f"{symbol}: {weight:.4f}")
    print(f"Expected return: {breakdown.expected_return:.6f}")
    print(f"Volatility:      {breakdown.volatility:.6f}")
    print(f"Sharpe ratio:    {breakdown.sharpe_ratio:.6f}")
    print(f"Penalty:         {breakdown.penalty:.6f}")
    print(f"Fitness:         {breakdown.fitness:.6f}")
    return 0


def _add_constraint_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--max-volatility", type=float, default=1.0, help="Volatility cap priced into fitness (default: 1.0).")
    parser.add_argument("--min-sharpe", type=float, default=float("-inf"), help="Sharpe floor priced into fitness (default: none).")
    parser.add_argument("--max-drawdown", type=float, default=1.0, help="Drawdown limit, reported only (default: 1.0).")
    parser.add_argument("--min-allocation", type=float, default=0.0, help="Per-asset lower bound, reported only.")
    parser.add_argument("--max-allocation", type=float, default=1.0, help="Per-asset upper bound, reported only.")
    parser.add_argument("--min-positions", type=int, default=1, help="Minimum held positions, reported only.")
    parser.add_argument("--max-positions", type=int, help="Maximum held positions, reported only.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qswarm",
        description="Particle-swarm portfolio allocation with amplitude/phase perturbation.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # optimise
    optimise = subparsers.add_parser(
        "optimise",
        help="Optimise one price file or every collated portfolio in a directory.",
    )
    source = optimise.add_mutually_exclusive_group()
    source.add_argument("--input", help="Single Date-indexed price CSV to optimise.")
    source.add_argument("--collated-dir", type=Path, help="Directory of *_collated.csv files (default: export dir).")
    optimise.add_argument("--name", help="Portfolio name for --input (default: file stem).")
    optimise.add_argument("--portfolio", dest="portfolios", nargs="*", help="Portfolio names to target in --collated-dir.")
    optimise.add_argument("--particles", type=int, help="Swarm size (default: QSWARM_PARTICLES or 100).")
    optimise.add_argument("--iterations", type=int, help="Iteration cap (default: QSWARM_ITERATIONS or 1000).")
    optimise.add_argument("--threshold", type=float, help="Convergence threshold; 0 disables early stopping.")
    optimise.add_argument("--seed", type=int, help="Seed for reproducible runs.")
    optimise.add_argument("--workers", type=int, help="Threads used for fitness evaluation.")
    optimise.add_argument(
        "--drawdown",
        choices=DRAWDOWN_BASES,
        help="Drawdown over raw weighted returns or the compounded equity curve.",
    )
    _add_constraint_arguments(optimise)
    optimise.add_argument("--output-dir", type=Path, help="Directory for artefacts (default: export dir).")
    optimise.add_argument("--no-export", action="store_true", help="Print results without writing artefacts.")
    optimise.add_argument("--plot", action="store_true", help="Write allocation pie charts.")
    optimise.add_argument("--compare-classical", action="store_true", help="Also solve the PyPortfolioOpt max-Sharpe baseline.")
    optimise.add_argument("--log-dir", type=Path, help="Optional logging directory.")
    optimise.add_argument("--log-level", help="Logging level for the log file (for example DEBUG).")

    # evaluate
    evaluate = subparsers.add_parser(
        "evaluate",
        help="Print the fitness breakdown of a given allocation.",
    )
    evaluate.add_argument("--input", required=True, help="Date-indexed price CSV.")
    evaluate.add_argument("--weights", nargs="+", required=True, help="Allocation as SYMBOL=WEIGHT pairs.")
    _add_constraint_arguments(evaluate)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point used by ``python -m qswarm.cli`` and console scripts."""

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "optimise":
        return _handle_optimise(args)
    if args.command == "evaluate":
        return _handle_evaluate(args)

    parser.print_help()
    return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
