"""High-level workflows: price files in, optimisation artefacts out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

import pandas as pd

from qswarm.config import QSwarmSettings, get_settings
from qswarm.context import build_context, read_price_history
from qswarm.exceptions import QSwarmError
from qswarm.metrics import DrawdownBasis
from qswarm.models import OptimizationConstraints
from qswarm.optimization.baseline import ClassicalAllocation, classical_max_sharpe
from qswarm.optimization.models import OptimizationResult
from qswarm.optimization.optimizer import QuantumSwarmOptimizer
from qswarm.visualization import plot_allocation

logger = logging.getLogger(__name__)

COLLATED_SUFFIX = "_collated"


@dataclass(frozen=True)
class PortfolioReport:
    """Named optimisation outcome plus the optional classical reference."""

    name: str
    result: OptimizationResult
    baseline: Optional[ClassicalAllocation] = None

    @property
    def summary(self) -> str:
        text = f"{self.name}: {self.result.summary}"
        if self.baseline is not None:
            text += f"\n  {self.baseline.summary}"
        return text


def build_optimizer(
    settings: Optional[QSwarmSettings] = None,
    *,
    particles: Optional[int] = None,
    iterations: Optional[int] = None,
    convergence_threshold: Optional[float] = None,
    seed: Optional[int] = None,
    max_workers: Optional[int] = None,
    drawdown_basis: Optional[DrawdownBasis] = None,
) -> QuantumSwarmOptimizer:
    """Create an optimizer, filling unset arguments from *settings*."""

    settings = settings or get_settings()
    return QuantumSwarmOptimizer(
        particles=settings.particles if particles is None else particles,
        iterations=settings.iterations if iterations is None else iterations,
        convergence_threshold=(
            settings.convergence_threshold
            if convergence_threshold is None
            else convergence_threshold
        ),
        seed=seed,
        max_workers=settings.max_workers if max_workers is None else max_workers,
        drawdown_basis=settings.drawdown_basis if drawdown_basis is None else drawdown_basis,
    )


def optimise_prices(
    name: str,
    prices: pd.DataFrame,
    *,
    constraints: Optional[OptimizationConstraints] = None,
    optimizer: Optional[QuantumSwarmOptimizer] = None,
    sectors: Optional[Mapping[str, str]] = None,
    compare_classical: bool = False,
) -> PortfolioReport:
    """Build a context from *prices* and run the swarm on it.

    When *compare_classical* is set, a PyPortfolioOpt max-Sharpe solution is
    attached; if it cannot be solved the report carries ``baseline=None``.
    """

    context = build_context(prices, constraints=constraints, sectors=sectors)
    result = (optimizer or build_optimizer()).optimize(context)

    for violation in result.violations:
        logger.warning("%s: %s", name, violation.message)

    baseline = None
    if compare_classical:
        try:
            baseline = classical_max_sharpe(context)
        except QSwarmError as exc:
            logger.warning("Classical baseline unavailable for %s: %s", name, exc)

    return PortfolioReport(name=name, result=result, baseline=baseline)


def _prepare_output_dir(path: Path) -> Path:
    target = Path(path).expanduser()
    target.mkdir(parents=True, exist_ok=True)
    return target


def _save_weights(report: PortfolioReport, output_dir: Path) -> Path:
    output_path = output_dir / f"{report.name}_weights.txt"

    lines = ["ticker,weight"]
    for ticker, weight in report.result.weights.items():
        lines.append(f"{ticker},{weight:.8f}")

    output_path.write_text("\n".join(lines), encoding="utf-8")
    return output_path


def _save_performance(report: PortfolioReport, output_dir: Path) -> Path:
    output_path = output_dir / f"{report.name}_performance.txt"

    result = report.result
    metrics = result.metrics
    lines = [
        f"Expected return: {result.expected_return * 100:.4f}%",
        f"Volatility: {metrics.volatility * 100:.4f}%",
        f"Sharpe Ratio (penalised): {metrics.sharpe_ratio:.4f}",
        f"Max drawdown: {metrics.max_drawdown * 100:.2f}%",
        f"Confidence: {result.confidence:.4f}",
        f"Iterations: {result.iterations}",
        f"Converged: {'yes' if result.converged else 'no'}",
    ]
    lines.extend(f"Violation: {violation.message}" for violation in result.violations)
    if report.baseline is not None:
        lines.append(f"Classical Sharpe Ratio: {report.baseline.sharpe_ratio:.4f}")
    output_path.write_text("\n".join(lines), encoding="utf-8")
    return output_path


def export_report(
    report: PortfolioReport,
    output_dir: Path,
    *,
    make_plot: bool = False,
) -> tuple[Path, ...]:
    """Write weights, performance and (optionally) a pie chart for *report*."""

    target_dir = _prepare_output_dir(output_dir)
    written = [_save_weights(report, target_dir), _save_performance(report, target_dir)]

    if make_plot:
        try:
            written.append(
                plot_allocation(
                    report.result,
                    target_dir / f"{report.name}_allocation.png",
                    title=f"{report.name} Allocation",
                )
            )
        except (RuntimeError, ValueError) as exc:
            logger.warning("Skipping allocation plot for %s: %s", report.name, exc)
    elif logger.isEnabledFor(logging.DEBUG):
        logger.debug("Allocation plot disabled for %s", report.name)

    return tuple(written)


def optimise_price_file(
    name: str,
    path: Path | str,
    *,
    output_dir: Optional[Path | str] = None,
    constraints: Optional[OptimizationConstraints] = None,
    optimizer: Optional[QuantumSwarmOptimizer] = None,
    sectors: Optional[Mapping[str, str]] = None,
    make_plot: bool = False,
    compare_classical: bool = False,
) -> PortfolioReport:
    """Read *path*, optimise it and export artefacts when *output_dir* is set.

    Raises:
        FileNotFoundError: If *path* is missing.
        QSwarmError: If the prices cannot form a valid context or the search fails.

    Example:
        >>> from qswarm.workflows import optimise_price_file
        >>> optimise_price_file('demo', 'data/exports/demo_collated.csv')  # doctest: +SKIP
        PortfolioReport(name='demo', ...)
    """

    prices = read_price_history(path)
    report = optimise_prices(
        name,
        prices,
        constraints=constraints,
        optimizer=optimizer,
        sectors=sectors,
        compare_classical=compare_classical,
    )
    if output_dir is not None:
        export_report(report, Path(output_dir), make_plot=make_plot)
    return report


def discover_price_files(collated_dir: Path | str) -> Dict[str, Path]:
    """Map portfolio name -> ``<name>_collated.csv`` under *collated_dir*."""

    return {
        path.stem[: -len(COLLATED_SUFFIX)]: path
        for path in sorted(Path(collated_dir).glob(f"*{COLLATED_SUFFIX}.csv"))
    }


def optimise_all_portfolios(
    collated_dir: Optional[Path | str] = None,
    *,
    portfolio_names: Optional[Iterable[str]] = None,
    output_dir: Optional[Path | str] = None,
    constraints: Optional[OptimizationConstraints] = None,
    optimizer: Optional[QuantumSwarmOptimizer] = None,
    make_plot: bool = False,
    compare_classical: bool = False,
) -> Dict[str, PortfolioReport]:
    """Optimise every collated portfolio, skipping the ones that fail.

    Args:
        collated_dir: Directory containing ``*_collated.csv`` files. Defaults
            to the configured export directory.
        portfolio_names: Optional subset of portfolio names to process.
        output_dir: Directory for artefacts; ``None`` disables export.
        constraints: Constraint set shared by every portfolio.
        optimizer: Optimizer shared by every portfolio.
        make_plot: When ``True`` generate allocation pie charts.
        compare_classical: Attach PyPortfolioOpt baselines.

    Returns:
        Mapping of portfolio name to :class:`PortfolioReport`.
    """

    settings = get_settings()
    directory = Path(collated_dir or settings.export_dir)
    price_files = discover_price_files(directory)

    if portfolio_names is not None:
        wanted = list(portfolio_names)
        missing = [name for name in wanted if name not in price_files]
        for name in missing:
            logger.warning("Skipping %s: no collated prices in %s", name, directory)
        price_files = {name: price_files[name] for name in wanted if name in price_files}

    if not price_files:
        logger.warning("No collated portfolios discovered in %s", directory)
        return {}

    optimizer = optimizer or build_optimizer(settings)
    reports: Dict[str, PortfolioReport] = {}
    for name, path in price_files.items():
        try:
            reports[name] = optimise_price_file(
                name,
                path,
                output_dir=output_dir,
                constraints=constraints,
                optimizer=optimizer,
                make_plot=make_plot,
                compare_classical=compare_classical,
            )
        except FileNotFoundError as exc:
            logger.warning("Skipping %s: %s", name, exc)
        except QSwarmError as exc:
            logger.warning("Skipping %s: %s", name, exc)

    if not reports:
        logger.warning("No portfolios optimised successfully")
    return reports


__all__ = [
    "PortfolioReport",
    "build_optimizer",
    "optimise_prices",
    "export_report",
    "optimise_price_file",
    "discover_price_files",
    "optimise_all_portfolios",
]
