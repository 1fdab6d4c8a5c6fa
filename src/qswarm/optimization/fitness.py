"""Penalised Sharpe-ratio fitness for candidate allocations.

The score of an allocation ``w`` is::

    sharpe  = (sum_i w_i * mean(returns_i) - 0.02) / volatility(w)
    penalty = 100 * max(0, volatility(w) - max_volatility)
            + 100 * max(0, min_sharpe_ratio - sharpe)
    fitness = sharpe - penalty

Penalties are soft: infeasible allocations are ranked lower, never rejected.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass

import numpy as np

from qswarm.exceptions import UndefinedMetricError
from qswarm.models import HistoricalData, OptimizationConstraints, RiskBudget

RISK_FREE_RATE: float = 0.02
PENALTY_SCALE: float = 100.0
# Keeps ``sharpe - penalty`` finite when a limit is infinite.
MAX_PENALTY: float = sys.float_info.max / 4


@dataclass(frozen=True)
class FitnessBreakdown:
    """Every intermediate value of one fitness evaluation."""

    expected_return: float
    volatility: float
    sharpe_ratio: float
    penalty: float
    fitness: float


def expected_return(allocation: np.ndarray, returns: np.ndarray) -> float:
    """Weighted sum of each asset's mean historical return.

    Example:
        >>> import numpy as np
        >>> from qswarm.optimization.fitness import expected_return
        >>> round(expected_return(np.array([0.5, 0.5]), np.array([[0.01, 0.03], [0.0, 0.02]])), 6)
        0.015
    """

    return float(np.dot(allocation, np.asarray(returns, dtype=float).mean(axis=1)))


def covariance_matrix(volatility: np.ndarray, correlation: np.ndarray) -> np.ndarray:
    """Return ``vol_i * vol_j * corr_ij`` for every asset pair."""

    vol = np.asarray(volatility, dtype=float)
    return np.outer(vol, vol) * np.asarray(correlation, dtype=float)


def portfolio_volatility(
    allocation: np.ndarray,
    volatility: np.ndarray,
    correlation: np.ndarray,
) -> float:
    """Square root of the quadratic-form portfolio variance.

    Raises:
        UndefinedMetricError: If the correlation matrix yields a negative
            variance for *allocation*.
    """

    return _volatility(np.asarray(allocation, dtype=float), covariance_matrix(volatility, correlation))


def _volatility(weights: np.ndarray, covariance: np.ndarray) -> float:
    variance = float(weights @ covariance @ weights)
    if variance < 0.0:
        # Rounding noise on a singular matrix.
        if variance > -1e-15:
            return 0.0
        raise UndefinedMetricError(
            f"Portfolio variance is negative ({variance:.3e}); "
            "correlation is not positive semi-definite."
        )
    return math.sqrt(variance)


def sharpe_ratio(
    expected: float,
    volatility: float,
    *,
    risk_free_rate: float = RISK_FREE_RATE,
) -> float:
    """Excess return per unit of volatility.

    Raises:
        UndefinedMetricError: If *volatility* is zero.
    """

    if volatility == 0.0:
        raise UndefinedMetricError("Volatility is zero; Sharpe ratio undefined.")
    return (expected - risk_free_rate) / volatility


def constraint_penalty(volatility: float, sharpe: float, risk_budget: RiskBudget) -> float:
    """Penalty for exceeding the volatility cap or missing the Sharpe floor."""

    penalty = 0.0
    if volatility > risk_budget.max_volatility:
        penalty += (volatility - risk_budget.max_volatility) * PENALTY_SCALE
    if sharpe < risk_budget.min_sharpe_ratio:
        penalty += (risk_budget.min_sharpe_ratio - sharpe) * PENALTY_SCALE
    return min(penalty, MAX_PENALTY)


class FitnessEvaluator:
    """Scores allocations against one context's history and risk budget.

    Mean returns and the covariance matrix are computed once per context, so
    repeated evaluations only pay for the dot products.
    """

    def __init__(self, data: HistoricalData, constraints: OptimizationConstraints) -> None:
        self._mean_returns = data.mean_returns()
        self._covariance = covariance_matrix(data.volatility, data.correlation)
        self._risk_budget = constraints.risk_budget

    def breakdown(self, allocation: np.ndarray) -> FitnessBreakdown:
        weights = np.asarray(allocation, dtype=float)
        expected = float(np.dot(weights, self._mean_returns))
        volatility = _volatility(weights, self._covariance)
        sharpe = sharpe_ratio(expected, volatility)
        penalty = constraint_penalty(volatility, sharpe, self._risk_budget)
        return FitnessBreakdown(
            expected_return=expected,
            volatility=volatility,
            sharpe_ratio=sharpe,
            penalty=penalty,
            fitness=sharpe - penalty,
        )

    def __call__(self, allocation: np.ndarray) -> float:
        return self.breakdown(allocation).fitness


def evaluate_fitness(
    allocation: np.ndarray,
    data: HistoricalData,
    constraints: OptimizationConstraints,
) -> FitnessBreakdown:
    """One-off evaluation of *allocation*; see :class:`FitnessEvaluator`."""

    return FitnessEvaluator(data, constraints).breakdown(allocation)


__all__ = [
    "RISK_FREE_RATE",
    "PENALTY_SCALE",
    "MAX_PENALTY",
    "FitnessBreakdown",
    "FitnessEvaluator",
    "expected_return",
    "covariance_matrix",
    "portfolio_volatility",
    "sharpe_ratio",
    "constraint_penalty",
    "evaluate_fitness",
]
