"""Input data model for the swarm optimizer."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Literal, Mapping, Optional, Sequence

import numpy as np

from qswarm.exceptions import InvalidInputError

RegimeKind = Literal["bull", "bear", "sideways", "volatile"]


@dataclass(frozen=True)
class Asset:
    """A tradable instrument as seen by the optimizer.

    Example:
        >>> from qswarm.models import Asset
        >>> Asset("AAA", price=101.5, volume=1_000.0, volatility=0.2).symbol
        'AAA'
    """

    symbol: str
    price: float
    volume: float
    volatility: float
    sector: Optional[str] = None


@dataclass(frozen=True)
class MarketRegime:
    """Market backdrop attached to a context. Never read by the search itself."""

    kind: RegimeKind = "sideways"
    confidence: float = 0.0
    trend_strength: float = 0.0
    volatility: float = 0.0
    momentum: float = 0.0


@dataclass(frozen=True)
class RiskBudget:
    """Portfolio-level risk limits.

    Only ``max_volatility`` and ``min_sharpe_ratio`` feed the fitness penalty;
    ``max_drawdown`` is reported by :func:`qswarm.constraints.audit_allocation`.
    """

    max_volatility: float = 1.0
    max_drawdown: float = 1.0
    min_sharpe_ratio: float = float("-inf")


@dataclass(frozen=True)
class SectorBounds:
    """Allowed share of the portfolio for one sector."""

    min: float = 0.0
    max: float = 1.0


@dataclass(frozen=True)
class OptimizationConstraints:
    """Constraint set supplied with every optimisation request.

    Attributes:
        risk_tolerance: Caller's appetite for risk, informational.
        min_allocation: Lower bound per asset weight.
        max_allocation: Upper bound per asset weight.
        min_positions: Minimum count of assets with a non-zero weight.
        max_positions: Maximum count of assets with a non-zero weight.
        sector_diversification: Sector label -> :class:`SectorBounds`.
        risk_budget: Volatility, drawdown and Sharpe limits.
    """

    risk_tolerance: float = 0.5
    min_allocation: float = 0.0
    max_allocation: float = 1.0
    min_positions: int = 1
    max_positions: Optional[int] = None
    sector_diversification: Mapping[str, SectorBounds] = field(default_factory=dict)
    risk_budget: RiskBudget = field(default_factory=RiskBudget)


def _as_float_array(values, name: str, ndim: int) -> np.ndarray:
    try:
        array = np.array(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{name} must be a rectangular numeric array") from exc
    if array.ndim != ndim:
        raise InvalidInputError(f"{name} must be {ndim}-dimensional, got shape {array.shape}")
    if not np.isfinite(array).all():
        raise InvalidInputError(f"{name} contains non-finite values")
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class HistoricalData:
    """Per-asset history, row ``i`` of every array belongs to asset ``i``.

    Attributes:
        returns: ``N x T`` matrix of periodic returns.
        volatility: ``N`` historical volatilities.
        correlation: ``N x N`` correlation matrix.
    """

    returns: np.ndarray
    volatility: np.ndarray
    correlation: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "returns", _as_float_array(self.returns, "returns", 2))
        object.__setattr__(
            self, "volatility", _as_float_array(self.volatility, "volatility", 1)
        )
        object.__setattr__(
            self, "correlation", _as_float_array(self.correlation, "correlation", 2)
        )

    @property
    def periods(self) -> int:
        return int(self.returns.shape[1])

    def mean_returns(self) -> np.ndarray:
        """Return the arithmetic mean of each asset's return series."""

        return self.returns.mean(axis=1)


@dataclass(frozen=True, eq=False)
class OptimizationContext:
    """Everything one ``optimize`` call consumes."""

    assets: Sequence[Asset]
    constraints: OptimizationConstraints
    historical_data: HistoricalData
    market_regime: Optional[MarketRegime] = None

    @property
    def dimension(self) -> int:
        return len(self.assets)

    @property
    def symbols(self) -> tuple[str, ...]:
        return tuple(asset.symbol for asset in self.assets)

    def validate(self) -> None:
        """Check that every array is aligned with the asset ordering.

        Raises:
            InvalidInputError: On any shape mismatch, empty history or NaN risk limit.
        """

        n = self.dimension
        if n == 0:
            raise InvalidInputError("At least one asset is required")

        data = self.historical_data
        if data.returns.shape[0] != n:
            raise InvalidInputError(
                f"returns has {data.returns.shape[0]} rows but {n} assets were supplied"
            )
        if data.periods == 0:
            raise InvalidInputError("returns must contain at least one period per asset")
        if data.volatility.shape != (n,):
            raise InvalidInputError(
                f"volatility has length {data.volatility.shape[0]} but {n} assets were supplied"
            )
        if data.correlation.shape != (n, n):
            raise InvalidInputError(
                f"correlation must be {n}x{n}, got {data.correlation.shape[0]}x"
                f"{data.correlation.shape[1]}"
            )

        budget = self.constraints.risk_budget
        for name in ("max_volatility", "max_drawdown", "min_sharpe_ratio"):
            if math.isnan(getattr(budget, name)):
                raise InvalidInputError(f"risk_budget.{name} must not be NaN")


__all__ = [
    "Asset",
    "MarketRegime",
    "RiskBudget",
    "SectorBounds",
    "OptimizationConstraints",
    "HistoricalData",
    "OptimizationContext",
]
