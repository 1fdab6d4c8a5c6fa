"""Tests for the amplitude/phase perturbation states."""

from __future__ import annotations

import math

import numpy as np
import pytest

from qswarm.optimization.quantum import TWO_PI, QuantumGrid, QuantumState


def test_state_evolve_rotates_by_new_phase():
    state = QuantumState(complex(1.0, 0.0), 0.5)
    evolved = state.evolve(1.0)

    assert evolved.phase == pytest.approx(1.5)
    assert evolved.amplitude.real == pytest.approx(math.cos(1.5))
    assert evolved.amplitude.imag == pytest.approx(math.sin(1.5))


def test_state_evolve_wraps_phase():
    evolved = QuantumState(complex(0.3, 0.4), 6.0).evolve(1.0)
    assert evolved.phase == pytest.approx(7.0 - TWO_PI)
    assert evolved.magnitude == pytest.approx(0.5)


def test_state_influence_is_magnitude_times_cosine():
    state = QuantumState(complex(0.6, 0.8), math.pi)
    assert state.influence == pytest.approx(-1.0)


def test_grid_random_draw_ranges():
    grid = QuantumGrid.random(8, 3, np.random.default_rng(0))
    amplitudes = grid.amplitudes

    assert grid.shape == (8, 3)
    assert ((amplitudes.real >= 0) & (amplitudes.real < 1)).all()
    assert ((amplitudes.imag >= 0) & (amplitudes.imag < 1)).all()
    assert ((grid.phases >= 0) & (grid.phases < TWO_PI)).all()


def test_grid_evolve_matches_single_state_formula():
    grid = QuantumGrid.random(4, 2, np.random.default_rng(5))
    before = [[grid.state(i, j) for j in range(2)] for i in range(4)]

    grid.evolve(np.random.default_rng(11))
    increments = np.random.default_rng(11).random((4, 2)) * math.pi

    for i in range(4):
        for j in range(2):
            expected = before[i][j].evolve(float(increments[i, j]))
            actual = grid.state(i, j)
            assert actual.phase == pytest.approx(expected.phase)
            assert actual.amplitude.real == pytest.approx(expected.amplitude.real)
            assert actual.amplitude.imag == pytest.approx(expected.amplitude.imag)


def test_grid_evolve_preserves_magnitude_and_phase_range():
    grid = QuantumGrid.random(6, 4, np.random.default_rng(3))
    magnitudes = np.abs(grid.amplitudes)
    rng = np.random.default_rng(4)

    for _ in range(25):
        grid.evolve(rng)

    np.testing.assert_allclose(np.abs(grid.amplitudes), magnitudes, rtol=1e-12)
    assert ((grid.phases >= 0) & (grid.phases < TWO_PI)).all()


def test_grid_coherence_is_mean_magnitude():
    amplitudes = np.array([[1.0 + 0j, 0.0 + 0.5j], [0.3 + 0.4j, 0.0 + 0j]])
    grid = QuantumGrid(amplitudes, np.zeros((2, 2)))
    assert grid.coherence() == pytest.approx((0.75 + 0.25) / 2)
    np.testing.assert_allclose(grid.influence(), np.abs(amplitudes))


def test_grid_rejects_mismatched_shapes():
    with pytest.raises(ValueError):
        QuantumGrid(np.zeros((2, 2), dtype=complex), np.zeros((2, 3)))


def test_grid_accepts_nested_lists():
    grid = QuantumGrid([[1.0 + 0j, 0.0 + 0.5j]], [[0.0, 1.0]])

    assert grid.shape == (1, 2)
    assert grid.amplitudes.dtype == complex
    assert grid.coherence() == pytest.approx(0.75)


def test_grid_rejects_mismatched_list_shapes():
    with pytest.raises(ValueError, match="share a shape"):
        QuantumGrid([[1.0 + 0j, 0.5 + 0j]], [[0.0]])
