"""Amplitude/phase perturbation states layered onto the particle swarm.

Each (particle, asset) pair carries a complex amplitude and a phase. Every
iteration the phase advances by a random step in ``[0, pi)`` and the amplitude
is rotated by the new phase. The product ``|amplitude| * cos(phase)`` is added
to the particle's next position. Nothing here models physical quantum
mechanics; it is a structured random walk.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

TWO_PI = 2.0 * math.pi


@dataclass(frozen=True)
class QuantumState:
    """Single amplitude/phase pair.

    Example:
        >>> from qswarm.optimization.quantum import QuantumState
        >>> state = QuantumState(complex(0.6, 0.8), 0.0)
        >>> round(state.magnitude, 6), round(state.influence, 6)
        (1.0, 1.0)
    """

    amplitude: complex
    phase: float

    @property
    def magnitude(self) -> float:
        return abs(self.amplitude)

    @property
    def influence(self) -> float:
        """Position perturbation contributed by this state."""

        return self.magnitude * math.cos(self.phase)

    def evolve(self, increment: float) -> "QuantumState":
        """Advance the phase by *increment* and rotate the amplitude by the new phase."""

        phase = (self.phase + increment) % TWO_PI
        cos_p, sin_p = math.cos(phase), math.sin(phase)
        real, imag = self.amplitude.real, self.amplitude.imag
        amplitude = complex(cos_p * real - sin_p * imag, sin_p * real + cos_p * imag)
        return QuantumState(amplitude, phase)


class QuantumGrid:
    """Every particle's states, stored as ``particles x dimension`` arrays.

    :meth:`evolve` applies the same formulas as :meth:`QuantumState.evolve`
    to all cells at once.
    """

    def __init__(self, amplitudes: np.ndarray, phases: np.ndarray) -> None:
        self._amplitudes = np.asarray(amplitudes, dtype=complex)
        self._phases = np.asarray(phases, dtype=float)
        if self._amplitudes.shape != self._phases.shape:
            raise ValueError("amplitudes and phases must share a shape")

    @classmethod
    def random(cls, particles: int, dimension: int, rng: np.random.Generator) -> "QuantumGrid":
        """Draw real and imaginary parts from ``U[0, 1)`` and phases from ``U[0, 2pi)``."""

        shape = (particles, dimension)
        real = rng.random(shape)
        imag = rng.random(shape)
        phases = rng.random(shape) * TWO_PI
        return cls(real + 1j * imag, phases)

    @property
    def shape(self) -> tuple[int, int]:
        return self._phases.shape

    @property
    def amplitudes(self) -> np.ndarray:
        return self._amplitudes.copy()

    @property
    def phases(self) -> np.ndarray:
        return self._phases.copy()

    def state(self, particle: int, dimension: int) -> QuantumState:
        return QuantumState(
            complex(self._amplitudes[particle, dimension]),
            float(self._phases[particle, dimension]),
        )

    def evolve(self, rng: np.random.Generator) -> None:
        increments = rng.random(self.shape) * math.pi
        phases = np.mod(self._phases + increments, TWO_PI)
        cos_p, sin_p = np.cos(phases), np.sin(phases)
        real, imag = self._amplitudes.real, self._amplitudes.imag
        self._amplitudes = (cos_p * real - sin_p * imag) + 1j * (sin_p * real + cos_p * imag)
        self._phases = phases

    def influence(self) -> np.ndarray:
        """Return ``|amplitude| * cos(phase)`` for every cell."""

        return np.abs(self._amplitudes) * np.cos(self._phases)

    def coherence(self) -> float:
        """Mean amplitude magnitude, averaged per particle and then across particles."""

        per_particle = np.abs(self._amplitudes).mean(axis=1)
        return float(per_particle.mean())


__all__ = ["QuantumState", "QuantumGrid", "TWO_PI"]
