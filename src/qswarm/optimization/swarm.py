"""Particle population and its per-iteration update and best-tracking steps.

The population is stored as ``particles x dimension`` arrays. One iteration
works in two phases:

* :meth:`Swarm.update` moves every particle against a snapshot of the global
  best taken before any particle moves.
* :meth:`Swarm.fold` receives the fitness of every particle, computed after
  all particles moved, and folds personal and global bests in particle order.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional, Sequence

import numpy as np

from qswarm.exceptions import DegenerateStateError
from qswarm.optimization.models import ParticleState
from qswarm.optimization.weights import ATOL, clamp_unit, normalize_allocation, random_allocation

logger = logging.getLogger(__name__)

INERTIA_WEIGHT: float = 0.7
COGNITIVE_WEIGHT: float = 1.5
SOCIAL_WEIGHT: float = 1.5

DegeneratePolicy = Literal["reset", "raise"]
DEGENERATE_POLICIES: tuple[str, ...] = ("reset", "raise")


class Swarm:
    """Positions, velocities and best-known allocations of every particle."""

    def __init__(self, positions: np.ndarray, *, on_degenerate: DegeneratePolicy = "reset") -> None:
        if on_degenerate not in DEGENERATE_POLICIES:
            raise ValueError(f"on_degenerate must be one of {DEGENERATE_POLICIES}")
        self.positions = np.array(positions, dtype=float)
        self.velocities = np.zeros_like(self.positions)
        self.best_positions = self.positions.copy()
        self.best_fitness = np.full(self.positions.shape[0], -np.inf)
        self.global_best_position: Optional[np.ndarray] = None
        self.global_best_fitness: float = float("-inf")
        self.degenerate_resets = 0
        self._on_degenerate = on_degenerate

    @classmethod
    def random(
        cls,
        particles: int,
        dimension: int,
        rng: np.random.Generator,
        *,
        on_degenerate: DegeneratePolicy = "reset",
    ) -> "Swarm":
        """Start every particle at a random normalised allocation with zero velocity."""

        return cls(random_allocation(rng, dimension, particles), on_degenerate=on_degenerate)

    @property
    def size(self) -> int:
        return int(self.positions.shape[0])

    @property
    def dimension(self) -> int:
        return int(self.positions.shape[1])

    def particle(self, index: int) -> ParticleState:
        """Return a copy of particle *index*."""

        return ParticleState(
            position=self.positions[index].copy(),
            velocity=self.velocities[index].copy(),
            best_position=self.best_positions[index].copy(),
            best_fitness=float(self.best_fitness[index]),
        )

    def update(self, influence: np.ndarray, rng: np.random.Generator) -> None:
        """Apply the velocity rule, add *influence*, clamp and re-normalise.

        ``influence`` holds the perturbation of every (particle, asset) cell.
        While no global best exists yet the social term is zero.
        """

        shape = self.positions.shape
        cognitive_draws = rng.random(shape)
        social_draws = rng.random(shape)

        cognitive = COGNITIVE_WEIGHT * cognitive_draws * (self.best_positions - self.positions)
        if self.global_best_position is None:
            social = np.zeros(shape)
        else:
            snapshot = self.global_best_position.copy()
            social = SOCIAL_WEIGHT * social_draws * (snapshot - self.positions)

        self.velocities = INERTIA_WEIGHT * self.velocities + cognitive + social
        raw = clamp_unit(self.positions + self.velocities + influence)
        self._handle_degenerate(raw, rng)
        self.positions = normalize_allocation(raw)

    def _handle_degenerate(self, raw: np.ndarray, rng: np.random.Generator) -> None:
        degenerate = np.flatnonzero(raw.sum(axis=1) <= ATOL)
        if degenerate.size == 0:
            return
        if self._on_degenerate == "raise":
            raise DegenerateStateError(
                f"Every weight clamped to zero for particle(s) {degenerate.tolist()}."
            )
        for index in degenerate:
            raw[index] = rng.random(self.dimension)
            self.velocities[index] = 0.0
        self.degenerate_resets += int(degenerate.size)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Re-seeded degenerate particle(s): %s", degenerate.tolist())

    def fold(self, fitness: Sequence[float]) -> None:
        """Fold one iteration's fitness values into personal and global bests.

        Every value in *fitness* was computed before this call, so no particle's
        score depends on another particle's best update from the same iteration.
        """

        values = np.asarray(fitness, dtype=float)
        if values.shape != (self.size,):
            raise ValueError(f"Expected {self.size} fitness values, got {values.shape}")

        for index, value in enumerate(values):
            if value > self.best_fitness[index]:
                self.best_fitness[index] = value
                self.best_positions[index] = self.positions[index]
                if value > self.global_best_fitness:
                    self.global_best_fitness = float(value)
                    self.global_best_position = self.positions[index].copy()


__all__ = [
    "INERTIA_WEIGHT",
    "COGNITIVE_WEIGHT",
    "SOCIAL_WEIGHT",
    "DEGENERATE_POLICIES",
    "DegeneratePolicy",
    "Swarm",
]
