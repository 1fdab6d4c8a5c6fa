"""Build optimisation contexts from stored price histories."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from qswarm.exceptions import InvalidInputError
from qswarm.metrics import compute_returns
from qswarm.models import (
    Asset,
    HistoricalData,
    MarketRegime,
    OptimizationConstraints,
    OptimizationContext,
)

logger = logging.getLogger(__name__)


def read_price_history(path: Path | str, *, index_col: str = "Date") -> pd.DataFrame:
    """Return price history stored in *path*.

    The CSV file is expected to contain one column per asset with a timestamp
    index column (default ``Date``). Missing values are forward filled and
    completely empty columns are dropped.

    Raises:
        FileNotFoundError: If *path* does not exist.
        InvalidInputError: If the file lacks the index column or holds no data.
    """

    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Price history file not found: {csv_path}")

    try:
        frame = pd.read_csv(csv_path, index_col=index_col, parse_dates=True)
    except ValueError as exc:
        raise InvalidInputError(
            f"Price history file is missing expected column '{index_col}': {csv_path}"
        ) from exc

    frame = frame.apply(pd.to_numeric, errors="coerce")
    frame = frame.ffill().dropna(axis=1, how="all").sort_index()
    if frame.empty:
        raise InvalidInputError(f"Price history for {csv_path} contains no usable data.")
    return frame


def _correlation(returns: pd.DataFrame) -> np.ndarray:
    corr = returns.corr().to_numpy(dtype=float, copy=True)
    # Constant series have no defined correlation; treat them as uncorrelated.
    corr = np.nan_to_num(corr, nan=0.0)
    np.fill_diagonal(corr, 1.0)
    return corr


def build_context(
    prices: pd.DataFrame,
    *,
    constraints: Optional[OptimizationConstraints] = None,
    regime: Optional[MarketRegime] = None,
    volumes: Optional[Mapping[str, float]] = None,
    sectors: Optional[Mapping[str, str]] = None,
) -> OptimizationContext:
    """Derive returns, volatilities and correlations from *prices*.

    Args:
        prices: Price DataFrame indexed by date with one column per asset.
        constraints: Constraint set; defaults to :class:`OptimizationConstraints`.
        regime: Optional market regime carried along for the caller.
        volumes: Optional symbol -> traded volume.
        sectors: Optional symbol -> sector label used by the constraint audit.

    Returns:
        A validated :class:`OptimizationContext` whose asset order matches the
        price columns.

    Raises:
        InvalidInputError: If fewer than two complete return periods remain.

    Example:
        >>> import pandas as pd
        >>> from qswarm.context import build_context
        >>> prices = pd.DataFrame({"A": [100.0, 101.0, 103.0], "B": [50.0, 49.0, 50.5]})
        >>> build_context(prices).historical_data.returns.shape
        (2, 2)
    """

    if prices.empty:
        raise InvalidInputError("Price history must not be empty.")

    returns = compute_returns(prices).dropna(how="any")
    if len(returns.index) < 2:
        raise InvalidInputError(
            "At least two complete return periods are required to estimate volatility."
        )

    volatility = returns.std(ddof=1)
    last_prices = prices.ffill().iloc[-1]
    volumes = volumes or {}
    sectors = sectors or {}

    assets = [
        Asset(
            symbol=str(symbol),
            price=float(last_prices[symbol]),
            volume=float(volumes.get(symbol, 0.0)),
            volatility=float(volatility[symbol]),
            sector=sectors.get(symbol),
        )
        for symbol in returns.columns
    ]

    context = OptimizationContext(
        assets=tuple(assets),
        constraints=constraints or OptimizationConstraints(),
        historical_data=HistoricalData(
            returns=returns.T.to_numpy(dtype=float),
            volatility=volatility.to_numpy(dtype=float),
            correlation=_correlation(returns),
        ),
        market_regime=regime,
    )
    context.validate()
    logger.debug(
        "Built context for %d assets over %d periods",
        context.dimension,
        context.historical_data.periods,
    )
    return context


__all__ = ["read_price_history", "build_context"]
