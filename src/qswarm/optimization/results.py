"""Package the final swarm state into an :class:`OptimizationResult`."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from qswarm.constraints import audit_allocation
from qswarm.exceptions import DegenerateStateError
from qswarm.metrics import DrawdownBasis, portfolio_max_drawdown
from qswarm.models import OptimizationContext
from qswarm.optimization.fitness import FitnessEvaluator
from qswarm.optimization.models import OptimizationMetrics, OptimizationResult
from qswarm.optimization.quantum import QuantumGrid
from qswarm.optimization.swarm import Swarm


def build_result(
    context: OptimizationContext,
    swarm: Swarm,
    grid: QuantumGrid,
    *,
    evaluator: FitnessEvaluator,
    fitness_history: Sequence[float],
    converged: bool,
    drawdown_basis: DrawdownBasis = "returns",
) -> OptimizationResult:
    """Derive return, confidence and risk metrics from the global best.

    Expected return and volatility are recomputed from the returned allocation
    rather than taken from the loop. ``metrics.sharpe_ratio`` is the
    global-best fitness.

    Raises:
        DegenerateStateError: If no particle ever produced a fitness value.
        UndefinedMetricError: If the drawdown peak is non-positive.
    """

    if swarm.global_best_position is None:
        raise DegenerateStateError("Search finished without a global best allocation.")

    allocation = np.array(swarm.global_best_position, dtype=float)
    breakdown = evaluator.breakdown(allocation)
    drawdown = portfolio_max_drawdown(
        allocation,
        context.historical_data.returns,
        basis=drawdown_basis,
    )
    confidence = float(np.clip(grid.coherence(), 0.0, 1.0))

    violations = audit_allocation(
        allocation,
        context.assets,
        context.constraints,
        volatility=breakdown.volatility,
        sharpe_ratio=breakdown.sharpe_ratio,
        max_drawdown=drawdown,
    )

    return OptimizationResult(
        allocation=tuple(float(weight) for weight in allocation),
        expected_return=breakdown.expected_return,
        confidence=confidence,
        metrics=OptimizationMetrics(
            sharpe_ratio=swarm.global_best_fitness,
            volatility=breakdown.volatility,
            max_drawdown=drawdown,
        ),
        symbols=context.symbols,
        iterations=len(fitness_history),
        converged=converged,
        fitness_history=tuple(float(value) for value in fitness_history),
        degenerate_resets=swarm.degenerate_resets,
        violations=violations,
    )


__all__ = ["build_result"]
