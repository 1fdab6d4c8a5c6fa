"""Tests for the PyPortfolioOpt max-Sharpe reference allocation."""

from __future__ import annotations

import math

import numpy as np
import pytest

pytest.importorskip("pypfopt")

from qswarm.exceptions import UndefinedMetricError  # noqa: E402
from qswarm.optimization import QuantumSwarmOptimizer, evaluate_fitness  # noqa: E402
from qswarm.optimization.baseline import classical_max_sharpe  # noqa: E402


@pytest.fixture()
def profitable_context(context_factory):
    return context_factory(
        [[0.05, 0.07, 0.06], [0.03, 0.05, 0.04]],
        [0.1, 0.2],
        [[1.0, 0.2], [0.2, 1.0]],
        symbols=["AAA", "BBB"],
    )


def test_classical_max_sharpe_returns_normalised_weights(profitable_context):
    allocation = classical_max_sharpe(profitable_context)

    assert set(allocation.weights) == {"AAA", "BBB"}
    assert math.isclose(sum(allocation.weights.values()), 1.0, abs_tol=1e-4)
    assert allocation.volatility > 0
    assert "classical max-Sharpe" in allocation.summary


def test_classical_sharpe_matches_swarm_fitness_formula(profitable_context):
    allocation = classical_max_sharpe(profitable_context)
    weights = np.array([allocation.weights["AAA"], allocation.weights["BBB"]])
    breakdown = evaluate_fitness(
        weights,
        profitable_context.historical_data,
        profitable_context.constraints,
    )
    assert breakdown.sharpe_ratio == pytest.approx(allocation.sharpe_ratio, abs=1e-3)


def test_swarm_does_not_beat_classical_optimum(profitable_context):
    baseline = classical_max_sharpe(profitable_context)
    result = QuantumSwarmOptimizer(20, 60, 0.0, seed=11).optimize(profitable_context)
    assert result.metrics.sharpe_ratio <= baseline.sharpe_ratio + 1e-4


def test_classical_max_sharpe_unavailable_below_risk_free(two_asset_context):
    with pytest.raises(UndefinedMetricError):
        classical_max_sharpe(two_asset_context)
