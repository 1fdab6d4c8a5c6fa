"""Tests for the swarm optimizer loop and its result."""

from __future__ import annotations

import math

import numpy as np
import pytest

from qswarm.exceptions import DegenerateStateError, InvalidConfigError, InvalidInputError
from qswarm.models import OptimizationConstraints, RiskBudget
from qswarm.optimization import QuantumSwarmOptimizer, evaluate_fitness, optimize
from qswarm.optimization.quantum import QuantumGrid
from qswarm.optimization.weights import is_valid_allocation


class _ForbiddenGenerator:
    """Stand-in generator that fails on any draw."""

    def random(self, *args, **kwargs):  # pragma: no cover - must never run
        raise AssertionError("random source used before validation")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"particles": 0},
        {"particles": 2.5},
        {"particles": True},
        {"iterations": 0},
        {"iterations": -3},
        {"convergence_threshold": -1e-6},
        {"convergence_threshold": float("nan")},
        {"convergence_threshold": "small"},
        {"max_workers": 0},
        {"drawdown_basis": "log"},
        {"on_degenerate": "ignore"},
        {"seed": 1, "rng": np.random.default_rng(1)},
    ],
)
def test_invalid_configuration_rejected(kwargs):
    with pytest.raises(InvalidConfigError):
        QuantumSwarmOptimizer(**kwargs)


def test_scenario_beats_single_asset_corner(two_asset_context):
    result = QuantumSwarmOptimizer(10, 50, 1e-8, seed=42).optimize(two_asset_context)

    assert len(result.allocation) == 2
    assert is_valid_allocation(np.array(result.allocation))
    assert 1 <= result.iterations <= 50

    corner = evaluate_fitness(
        np.array([1.0, 0.0]),
        two_asset_context.historical_data,
        two_asset_context.constraints,
    )
    assert result.metrics.sharpe_ratio >= corner.fitness


def test_result_metrics_follow_returned_allocation(two_asset_context):
    result = QuantumSwarmOptimizer(8, 20, 0.0, seed=3).optimize(two_asset_context)
    breakdown = evaluate_fitness(
        np.array(result.allocation),
        two_asset_context.historical_data,
        two_asset_context.constraints,
    )

    assert result.expected_return == pytest.approx(breakdown.expected_return)
    assert result.metrics.volatility == pytest.approx(breakdown.volatility)
    assert result.metrics.sharpe_ratio == pytest.approx(breakdown.fitness)
    assert 0.0 <= result.confidence <= 1.0
    assert result.metrics.max_drawdown >= 0.0
    assert set(result.weights) == {"A0", "A1"}


@pytest.mark.parametrize(("particles", "iterations", "seed"), [(8, 20, 3), (1, 4, 11), (30, 5, 0)])
def test_confidence_is_clamped_grid_coherence(two_asset_context, particles, iterations, seed):
    result = QuantumSwarmOptimizer(particles, iterations, 0.0, seed=seed).optimize(two_asset_context)

    # Evolution only rotates amplitudes, so the final coherence equals the
    # coherence of the first grid drawn from the seeded generator.
    replayed = QuantumGrid.random(particles, two_asset_context.dimension, np.random.default_rng(seed))
    magnitude = np.mean(np.mean(np.abs(replayed.amplitudes), axis=1))

    assert result.confidence == pytest.approx(float(np.clip(magnitude, 0.0, 1.0)))


def test_zero_threshold_runs_every_iteration(two_asset_context):
    result = QuantumSwarmOptimizer(5, 17, 0.0, seed=1).optimize(two_asset_context)
    assert result.iterations == 17
    assert not result.converged


def test_infinite_threshold_stops_after_second_iteration(two_asset_context):
    result = QuantumSwarmOptimizer(5, 30, float("inf"), seed=1).optimize(two_asset_context)
    assert result.iterations == 2
    assert result.converged


def test_single_iteration_cap(two_asset_context):
    result = QuantumSwarmOptimizer(4, 1, seed=5).optimize(two_asset_context)
    assert result.iterations == 1
    assert len(result.fitness_history) == 1


def test_global_best_history_never_decreases(two_asset_context):
    result = QuantumSwarmOptimizer(6, 40, 0.0, seed=8).optimize(two_asset_context)
    history = np.array(result.fitness_history)
    assert (np.diff(history) >= 0).all()
    assert history[-1] == result.metrics.sharpe_ratio


def test_seeded_runs_are_reproducible(two_asset_context):
    optimizer = QuantumSwarmOptimizer(7, 25, 0.0, seed=123)
    first = optimizer.optimize(two_asset_context)
    second = optimizer.optimize(two_asset_context)
    other = QuantumSwarmOptimizer(7, 25, 0.0, seed=123).optimize(two_asset_context)

    assert first.allocation == second.allocation == other.allocation
    assert first.fitness_history == other.fitness_history
    assert first.confidence == other.confidence


def test_injected_generator_is_shared_between_calls(two_asset_context):
    rng = np.random.default_rng(5)
    optimizer = QuantumSwarmOptimizer(5, 10, 0.0, rng=rng)
    first = optimizer.optimize(two_asset_context)
    replay = QuantumSwarmOptimizer(5, 10, 0.0, rng=np.random.default_rng(5)).optimize(
        two_asset_context
    )
    second = optimizer.optimize(two_asset_context)

    assert first.allocation == replay.allocation
    assert second.fitness_history != first.fitness_history


def test_thread_pool_matches_serial_evaluation(two_asset_context):
    serial = QuantumSwarmOptimizer(12, 30, 0.0, seed=99).optimize(two_asset_context)
    threaded = QuantumSwarmOptimizer(12, 30, 0.0, seed=99, max_workers=4).optimize(
        two_asset_context
    )
    assert serial.allocation == threaded.allocation
    assert serial.fitness_history == threaded.fitness_history


def test_penalty_dominated_budget_stays_finite(two_asset_context, context_factory):
    context = context_factory(
        two_asset_context.historical_data.returns,
        two_asset_context.historical_data.volatility,
        two_asset_context.historical_data.correlation,
        constraints=OptimizationConstraints(
            risk_budget=RiskBudget(max_volatility=0.0, min_sharpe_ratio=float("inf"))
        ),
    )

    result = QuantumSwarmOptimizer(10, 50, 1e-8, seed=4).optimize(context)

    assert result.iterations <= 50
    assert math.isfinite(result.metrics.sharpe_ratio)
    assert result.metrics.sharpe_ratio < -1e300
    assert all(math.isfinite(value) for value in result.fitness_history)
    assert [violation.kind for violation in result.violations] == [
        "max_volatility",
        "min_sharpe_ratio",
    ]


def test_malformed_context_fails_before_any_draw(context_factory):
    context = context_factory([[0.01, 0.02]], [0.1, 0.2], np.eye(2))
    optimizer = QuantumSwarmOptimizer(5, 5, rng=_ForbiddenGenerator())

    with pytest.raises(InvalidInputError):
        optimizer.optimize(context)


def test_nan_risk_limit_fails_before_any_draw(two_asset_context, context_factory):
    data = two_asset_context.historical_data
    context = context_factory(
        data.returns,
        data.volatility,
        data.correlation,
        constraints=OptimizationConstraints(risk_budget=RiskBudget(max_volatility=float("nan"))),
    )

    with pytest.raises(InvalidInputError, match="max_volatility must not be NaN"):
        QuantumSwarmOptimizer(5, 5, rng=_ForbiddenGenerator()).optimize(context)


def test_raise_policy_surfaces_degenerate_particles(context_factory):
    # With a single asset every clamp-to-zero step empties the particle.
    context = context_factory([[0.05, 0.06, 0.07]], [0.1], [[1.0]])
    optimizer = QuantumSwarmOptimizer(50, 200, 0.0, seed=0, on_degenerate="raise")

    with pytest.raises(DegenerateStateError):
        optimizer.optimize(context)


def test_reset_policy_counts_degenerate_particles(context_factory):
    context = context_factory([[0.05, 0.06, 0.07]], [0.1], [[1.0]])
    result = QuantumSwarmOptimizer(50, 200, 0.0, seed=0).optimize(context)

    assert result.allocation == (1.0,)
    assert result.degenerate_resets > 0


def test_module_level_optimize(two_asset_context):
    result = optimize(two_asset_context, particles=4, iterations=3, seed=2)
    assert result.iterations <= 3
    assert result.symbols == ("A0", "A1")
