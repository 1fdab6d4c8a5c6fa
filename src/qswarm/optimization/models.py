"""Data structures for swarm state and optimisation outputs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

import numpy as np
import pandas as pd

from qswarm.constraints import ConstraintViolation


@dataclass
class ParticleState:
    """One particle: current allocation, momentum and best-known allocation."""

    position: np.ndarray
    velocity: np.ndarray
    best_position: np.ndarray
    best_fitness: float = float("-inf")


@dataclass(frozen=True)
class OptimizationMetrics:
    """Risk metrics of the returned allocation.

    ``sharpe_ratio`` is the global-best fitness, so it still contains any
    penalty left at termination. It equals the plain Sharpe ratio only when the
    allocation satisfies the risk budget.
    """

    sharpe_ratio: float
    volatility: float
    max_drawdown: float


@dataclass(frozen=True)
class OptimizationResult:
    """Final allocation with its quality metrics and run diagnostics.

    Attributes:
        allocation: Weights aligned with ``symbols``; each in ``[0, 1]``, summing to one.
        expected_return: Weighted mean historical return of ``allocation``.
        confidence: Mean amplitude magnitude of the perturbation grid, clamped
            to ``[0, 1]``. Describes the perturbation source, not the solution.
        metrics: See :class:`OptimizationMetrics`.
        symbols: Asset symbols in context order.
        iterations: Number of iterations executed.
        converged: ``True`` when the run stopped on the fitness-delta test.
        fitness_history: Global-best fitness after each iteration.
        degenerate_resets: Particles re-seeded after clamping zeroed every weight.
        violations: Declared constraints the allocation breaks.

    Example:
        >>> from qswarm.optimization.models import OptimizationMetrics, OptimizationResult
        >>> result = OptimizationResult((0.25, 0.75), 0.012, 0.6, OptimizationMetrics(0.4, 0.1, 0.2), symbols=("A", "B"))
        >>> result.weights
        {'A': 0.25, 'B': 0.75}
    """

    allocation: tuple[float, ...]
    expected_return: float
    confidence: float
    metrics: OptimizationMetrics
    symbols: tuple[str, ...] = ()
    iterations: int = 0
    converged: bool = False
    fitness_history: tuple[float, ...] = ()
    degenerate_resets: int = 0
    violations: tuple[ConstraintViolation, ...] = field(default_factory=tuple)

    @property
    def weights(self) -> Dict[str, float]:
        """Allocation keyed by symbol (positional labels when symbols are absent)."""

        labels = self.symbols or tuple(str(index) for index in range(len(self.allocation)))
        return dict(zip(labels, self.allocation))

    def non_zero(self) -> Dict[str, float]:
        """Return allocations greater than zero."""

        return {symbol: weight for symbol, weight in self.weights.items() if weight > 0}

    def as_series(self) -> pd.Series:
        """Return the allocation as a pandas Series indexed by symbol."""

        return pd.Series(self.weights, name="weight", dtype=float)

    @property
    def summary(self) -> str:
        """Return a human-readable summary of key metrics."""

        return (
            f"expected {self.expected_return:.2%}, "
            f"volatility {self.metrics.volatility:.2%}, "
            f"sharpe {self.metrics.sharpe_ratio:.2f}, "
            f"max drawdown {self.metrics.max_drawdown:.2%}, "
            f"confidence {self.confidence:.2f} "
            f"({self.iterations} iterations{', converged' if self.converged else ''})"
        )


__all__ = [
    "ParticleState",
    "OptimizationMetrics",
    "OptimizationResult",
]
