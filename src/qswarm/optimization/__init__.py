"""Swarm optimisation components."""

from .fitness import FitnessBreakdown, FitnessEvaluator, evaluate_fitness
from .models import OptimizationMetrics, OptimizationResult, ParticleState
from .optimizer import QuantumSwarmOptimizer, optimize
from .quantum import QuantumGrid, QuantumState
from .weights import normalize_allocation

__all__ = [
    "FitnessBreakdown",
    "FitnessEvaluator",
    "evaluate_fitness",
    "OptimizationMetrics",
    "OptimizationResult",
    "ParticleState",
    "QuantumSwarmOptimizer",
    "optimize",
    "QuantumGrid",
    "QuantumState",
    "normalize_allocation",
]
