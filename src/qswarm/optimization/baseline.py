"""Classical max-Sharpe allocation on the same inputs, via PyPortfolioOpt.

Uses the swarm's mean returns and ``vol_i * vol_j * corr_ij`` covariance with
the same 0.02 risk-free rate, giving a deterministic reference point for a
swarm result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict

import pandas as pd

from qswarm.exceptions import UndefinedMetricError
from qswarm.models import OptimizationContext
from qswarm.optimization.fitness import RISK_FREE_RATE, covariance_matrix

if TYPE_CHECKING:  # pragma: no cover
    from pypfopt import EfficientFrontier


@dataclass(frozen=True)
class ClassicalAllocation:
    """Max-Sharpe weights and their performance triple."""

    weights: Dict[str, float]
    expected_return: float
    volatility: float
    sharpe_ratio: float

    @property
    def summary(self) -> str:
        return (
            f"classical max-Sharpe: expected {self.expected_return:.2%}, "
            f"volatility {self.volatility:.2%}, sharpe {self.sharpe_ratio:.2f}"
        )


def _build_efficient_frontier(
    context: OptimizationContext,
    weight_bounds: tuple[float, float],
) -> "EfficientFrontier":
    from pypfopt import EfficientFrontier

    symbols = list(context.symbols)
    data = context.historical_data
    mu = pd.Series(data.mean_returns(), index=symbols)
    sigma = pd.DataFrame(
        covariance_matrix(data.volatility, data.correlation),
        index=symbols,
        columns=symbols,
    )
    return EfficientFrontier(mu, sigma, weight_bounds=weight_bounds)


def classical_max_sharpe(
    context: OptimizationContext,
    *,
    weight_bounds: tuple[float, float] | None = None,
) -> ClassicalAllocation:
    """Solve the long-only max-Sharpe problem for *context*.

    Args:
        context: Validated optimisation context.
        weight_bounds: Per-asset bounds; defaults to the context's
            ``min_allocation``/``max_allocation``.

    Raises:
        UndefinedMetricError: If no asset beats the risk-free rate or the
            solver fails.
    """

    from pypfopt.exceptions import OptimizationError

    context.validate()
    constraints = context.constraints
    bounds = weight_bounds or (constraints.min_allocation, constraints.max_allocation)

    ef = _build_efficient_frontier(context, bounds)
    try:
        ef.max_sharpe(risk_free_rate=RISK_FREE_RATE)
    except (ValueError, OptimizationError) as exc:
        raise UndefinedMetricError(f"Classical max-Sharpe solution unavailable: {exc}") from exc

    cleaned = ef.clean_weights()
    expected, volatility, sharpe = ef.portfolio_performance(
        verbose=False,
        risk_free_rate=RISK_FREE_RATE,
    )
    return ClassicalAllocation(
        weights={symbol: float(weight) for symbol, weight in cleaned.items()},
        expected_return=float(expected),
        volatility=float(volatility),
        sharpe_ratio=float(sharpe),
    )


__all__ = ["ClassicalAllocation", "classical_max_sharpe"]
