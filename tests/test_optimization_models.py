"""Tests for optimisation dataclasses."""

from __future__ import annotations

import numpy as np

from qswarm.constraints import ConstraintViolation
from qswarm.optimization import OptimizationMetrics, OptimizationResult, ParticleState


def _result(**kwargs) -> OptimizationResult:
    defaults = dict(
        allocation=(0.6, 0.0, 0.4),
        expected_return=0.08,
        confidence=0.55,
        metrics=OptimizationMetrics(1.2, 0.15, 0.1),
        symbols=("AAA", "BBB", "CCC"),
        iterations=12,
    )
    defaults.update(kwargs)
    return OptimizationResult(**defaults)


def test_weights_follow_symbol_order():
    assert _result().weights == {"AAA": 0.6, "BBB": 0.0, "CCC": 0.4}


def test_weights_fall_back_to_positions_without_symbols():
    assert _result(symbols=()).weights == {"0": 0.6, "1": 0.0, "2": 0.4}


def test_non_zero_filters_empty_positions():
    assert _result().non_zero() == {"AAA": 0.6, "CCC": 0.4}


def test_as_series_is_indexed_by_symbol():
    series = _result().as_series()
    assert series.name == "weight"
    assert series.index.tolist() == ["AAA", "BBB", "CCC"]


def test_summary_formats_percentages():
    summary = _result().summary
    assert "expected 8.00%" in summary
    assert "volatility 15.00%" in summary
    assert "sharpe 1.20" in summary
    assert "confidence 0.55" in summary
    assert "(12 iterations)" in summary
    assert "converged" in _result(converged=True).summary


def test_violation_message_names_subject():
    violation = ConstraintViolation("max_allocation", "AAA", 0.5, 0.6)
    assert violation.message == "max_allocation violated for AAA: observed 0.6, limit 0.5"


def test_particle_state_defaults_to_unscored():
    state = ParticleState(np.zeros(2), np.zeros(2), np.zeros(2))
    assert state.best_fitness == float("-inf")
