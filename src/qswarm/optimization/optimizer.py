"""Particle-swarm allocation search with amplitude/phase perturbation."""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from numbers import Integral, Real
from typing import Optional

import numpy as np

from qswarm.config import (
    DEFAULT_CONVERGENCE_THRESHOLD,
    DEFAULT_ITERATIONS,
    DEFAULT_PARTICLES,
)
from qswarm.exceptions import InvalidConfigError
from qswarm.metrics import DRAWDOWN_BASES, DrawdownBasis
from qswarm.models import OptimizationContext
from qswarm.optimization.fitness import FitnessEvaluator
from qswarm.optimization.models import OptimizationResult
from qswarm.optimization.quantum import QuantumGrid
from qswarm.optimization.results import build_result
from qswarm.optimization.swarm import DEGENERATE_POLICIES, DegeneratePolicy, Swarm

logger = logging.getLogger(__name__)


def _require_count(name: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidConfigError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise InvalidConfigError(f"{name} must be at least 1, got {value}")
    return int(value)


class QuantumSwarmOptimizer:
    """Search for the allocation with the best penalised Sharpe ratio.

    Args:
        particles: Population size.
        iterations: Iteration cap.
        convergence_threshold: The run stops once the global-best fitness
            moves by less than this between consecutive iterations. ``0``
            disables early stopping.
        rng: Random source shared by every call to :meth:`optimize`.
        seed: Seed for a fresh ``numpy.random.default_rng`` at the start of
            each :meth:`optimize` call, making repeated calls identical.
            Mutually exclusive with *rng*. With neither, an unseeded
            generator is used.
        max_workers: Threads used to evaluate particle fitness. ``1`` keeps
            evaluation in the calling thread.
        drawdown_basis: ``"returns"`` or ``"equity"``; see
            :func:`qswarm.metrics.portfolio_max_drawdown`.
        on_degenerate: ``"reset"`` re-seeds a particle whose weights all
            clamp to zero; ``"raise"`` aborts with
            :class:`~qswarm.exceptions.DegenerateStateError`.

    Raises:
        InvalidConfigError: If any argument is out of range.

    Example:
        >>> from qswarm.optimization import QuantumSwarmOptimizer
        >>> optimizer = QuantumSwarmOptimizer(particles=10, iterations=50, seed=7)
        >>> optimizer.particles, optimizer.iterations
        (10, 50)
    """

    def __init__(
        self,
        particles: int = DEFAULT_PARTICLES,
        iterations: int = DEFAULT_ITERATIONS,
        convergence_threshold: float = DEFAULT_CONVERGENCE_THRESHOLD,
        *,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        max_workers: int = 1,
        drawdown_basis: DrawdownBasis = "returns",
        on_degenerate: DegeneratePolicy = "reset",
    ) -> None:
        self.particles = _require_count("particles", particles)
        self.iterations = _require_count("iterations", iterations)
        self.max_workers = _require_count("max_workers", max_workers)

        if isinstance(convergence_threshold, bool) or not isinstance(convergence_threshold, Real):
            raise InvalidConfigError(
                f"convergence_threshold must be a number, got {convergence_threshold!r}"
            )
        if math.isnan(convergence_threshold) or convergence_threshold < 0:
            raise InvalidConfigError(
                f"convergence_threshold must be non-negative, got {convergence_threshold!r}"
            )
        self.convergence_threshold = float(convergence_threshold)

        if drawdown_basis not in DRAWDOWN_BASES:
            raise InvalidConfigError(f"drawdown_basis must be one of {DRAWDOWN_BASES}")
        if on_degenerate not in DEGENERATE_POLICIES:
            raise InvalidConfigError(f"on_degenerate must be one of {DEGENERATE_POLICIES}")
        if rng is not None and seed is not None:
            raise InvalidConfigError("Pass either rng or seed, not both")

        self.drawdown_basis = drawdown_basis
        self.on_degenerate = on_degenerate
        self._seed = seed
        self._rng = rng if rng is not None else (None if seed is not None else np.random.default_rng())

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(particles={self.particles}, iterations={self.iterations}, "
            f"convergence_threshold={self.convergence_threshold!r})"
        )

    def _generator(self) -> np.random.Generator:
        if self._rng is not None:
            return self._rng
        return np.random.default_rng(self._seed)

    def optimize(self, context: OptimizationContext) -> OptimizationResult:
        """Run the search on *context* and return the best allocation found.

        Raises:
            InvalidInputError: If the context arrays are misaligned. Raised
                before any random draw.
            DegenerateStateError: If ``on_degenerate="raise"`` and a particle
                loses every weight.
            UndefinedMetricError: On zero portfolio volatility or a
                non-positive drawdown peak.
        """

        context.validate()
        rng = self._generator()
        evaluator = FitnessEvaluator(context.historical_data, context.constraints)

        logger.info(
            "Optimising %d assets with %d particles (cap %d iterations)",
            context.dimension,
            self.particles,
            self.iterations,
        )

        grid = QuantumGrid.random(self.particles, context.dimension, rng)
        swarm = Swarm.random(
            self.particles,
            context.dimension,
            rng,
            on_degenerate=self.on_degenerate,
        )

        history: list[float] = []
        previous_best = float("-inf")
        converged = False

        executor = ThreadPoolExecutor(max_workers=self.max_workers) if self.max_workers > 1 else None
        try:
            while len(history) < self.iterations and not converged:
                grid.evolve(rng)
                swarm.update(grid.influence(), rng)
                swarm.fold(self._evaluate(evaluator, swarm.positions, executor))

                current_best = swarm.global_best_fitness
                history.append(current_best)
                if abs(current_best - previous_best) < self.convergence_threshold:
                    converged = True
                previous_best = current_best

                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug("Iteration %d: best fitness %.8f", len(history), current_best)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        result = build_result(
            context,
            swarm,
            grid,
            evaluator=evaluator,
            fitness_history=history,
            converged=converged,
            drawdown_basis=self.drawdown_basis,
        )
        logger.info(
            "Finished after %d iterations (converged=%s, best fitness %.6f)",
            result.iterations,
            converged,
            result.metrics.sharpe_ratio,
        )
        return result

    @staticmethod
    def _evaluate(
        evaluator: FitnessEvaluator,
        positions: np.ndarray,
        executor: Optional[ThreadPoolExecutor],
    ) -> list[float]:
        rows = list(positions)
        if executor is None:
            return [evaluator(row) for row in rows]
        return list(executor.map(evaluator, rows))


def optimize(context: OptimizationContext, **config) -> OptimizationResult:
    """Convenience wrapper: ``QuantumSwarmOptimizer(**config).optimize(context)``."""

    return QuantumSwarmOptimizer(**config).optimize(context)


__all__ = ["QuantumSwarmOptimizer", "optimize"]
