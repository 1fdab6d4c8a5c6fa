"""Post-hoc audit of an allocation against its declared constraints.

The swarm only prices ``max_volatility`` and ``min_sharpe_ratio`` into its
fitness. Per-asset bounds, position counts, sector bounds and the drawdown
limit are accepted on :class:`~qswarm.models.OptimizationConstraints` but do
not steer the search. :func:`audit_allocation` lists the ones a final
allocation breaks so callers can see them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from qswarm.models import Asset, OptimizationConstraints

logger = logging.getLogger(__name__)

POSITION_EPSILON: float = 1e-6
_TOLERANCE: float = 1e-9


@dataclass(frozen=True)
class ConstraintViolation:
    """One broken constraint.

    Attributes:
        kind: Short identifier such as ``"max_allocation"`` or ``"sector_min"``.
        subject: Asset symbol, sector label or ``"portfolio"``.
        limit: The declared bound.
        observed: The value the allocation produced.
    """

    kind: str
    subject: str
    limit: float
    observed: float

    @property
    def message(self) -> str:
        return f"{self.kind} violated for {self.subject}: observed {self.observed:.6g}, limit {self.limit:.6g}"


def _sector_weights(allocation: np.ndarray, assets: Sequence[Asset]) -> dict[str, float]:
    totals: dict[str, float] = {}
    for weight, asset in zip(allocation, assets):
        if asset.sector is None:
            continue
        totals[asset.sector] = totals.get(asset.sector, 0.0) + float(weight)
    return totals


def audit_allocation(
    allocation: Sequence[float] | np.ndarray,
    assets: Sequence[Asset],
    constraints: OptimizationConstraints,
    *,
    volatility: Optional[float] = None,
    sharpe_ratio: Optional[float] = None,
    max_drawdown: Optional[float] = None,
) -> tuple[ConstraintViolation, ...]:
    """Return every constraint *allocation* breaks, in a stable order.

    Args:
        allocation: Weights aligned with *assets*.
        assets: Assets of the optimisation context; ``sector`` labels drive
            the sector checks and assets without a sector are ignored there.
        constraints: Declared constraint set.
        volatility: Portfolio volatility, checked against the risk budget when given.
        sharpe_ratio: Portfolio Sharpe ratio, checked against the risk budget when given.
        max_drawdown: Portfolio max drawdown, checked against the risk budget when given.

    Example:
        >>> from qswarm.constraints import audit_allocation
        >>> from qswarm.models import Asset, OptimizationConstraints
        >>> assets = [Asset("A", 1.0, 0.0, 0.1), Asset("B", 1.0, 0.0, 0.2)]
        >>> [v.kind for v in audit_allocation([0.9, 0.1], assets, OptimizationConstraints(max_allocation=0.8))]
        ['max_allocation']
    """

    weights = np.asarray(allocation, dtype=float)
    violations: list[ConstraintViolation] = []

    for weight, asset in zip(weights, assets):
        held = weight > POSITION_EPSILON
        if held and weight < constraints.min_allocation - _TOLERANCE:
            violations.append(
                ConstraintViolation("min_allocation", asset.symbol, constraints.min_allocation, float(weight))
            )
        if weight > constraints.max_allocation + _TOLERANCE:
            violations.append(
                ConstraintViolation("max_allocation", asset.symbol, constraints.max_allocation, float(weight))
            )

    positions = int((weights > POSITION_EPSILON).sum())
    if positions < constraints.min_positions:
        violations.append(
            ConstraintViolation("min_positions", "portfolio", constraints.min_positions, positions)
        )
    if constraints.max_positions is not None and positions > constraints.max_positions:
        violations.append(
            ConstraintViolation("max_positions", "portfolio", constraints.max_positions, positions)
        )

    sector_totals = _sector_weights(weights, assets)
    for sector, bounds in constraints.sector_diversification.items():
        observed = sector_totals.get(sector, 0.0)
        if observed < bounds.min - _TOLERANCE:
            violations.append(ConstraintViolation("sector_min", sector, bounds.min, observed))
        if observed > bounds.max + _TOLERANCE:
            violations.append(ConstraintViolation("sector_max", sector, bounds.max, observed))

    budget = constraints.risk_budget
    if volatility is not None and volatility > budget.max_volatility:
        violations.append(
            ConstraintViolation("max_volatility", "portfolio", budget.max_volatility, volatility)
        )
    if sharpe_ratio is not None and sharpe_ratio < budget.min_sharpe_ratio:
        violations.append(
            ConstraintViolation("min_sharpe_ratio", "portfolio", budget.min_sharpe_ratio, sharpe_ratio)
        )
    if max_drawdown is not None and max_drawdown > budget.max_drawdown:
        violations.append(
            ConstraintViolation("max_drawdown", "portfolio", budget.max_drawdown, max_drawdown)
        )

    if violations and logger.isEnabledFor(logging.DEBUG):
        for violation in violations:
            logger.debug(violation.message)
    return tuple(violations)


__all__ = ["ConstraintViolation", "POSITION_EPSILON", "audit_allocation"]
