"""Return-series and drawdown utilities.

``compute_returns`` accepts ``pandas`` Series or DataFrames and returns results
with matching dimensionality. The drawdown helpers work on numpy arrays.
"""

from __future__ import annotations

from typing import Literal, Tuple

import numpy as np
import pandas as pd

from qswarm.exceptions import UndefinedMetricError

PandasLike = pd.Series | pd.DataFrame
DrawdownBasis = Literal["returns", "equity"]
DRAWDOWN_BASES: tuple[str, ...] = ("returns", "equity")


def _coerce_to_dataframe(data: PandasLike) -> Tuple[pd.DataFrame, bool]:
    """Normalise inputs to a DataFrame while tracking the original shape."""

    if not isinstance(data, (pd.Series, pd.DataFrame)):
        raise TypeError("Input must be a pandas Series or DataFrame.")

    if isinstance(data, pd.Series):
        frame = data.to_frame(name=data.name or "value")
        return frame, True
    return data.copy(), False


def _prep_numeric(frame: pd.DataFrame) -> pd.DataFrame:
    cleaned = frame.apply(pd.to_numeric, errors="coerce")
    cleaned = cleaned.replace([np.inf, -np.inf], np.nan)
    cleaned = cleaned.dropna(how="all")
    if cleaned.empty:
        raise ValueError("Input must contain at least one finite observation per column.")
    return cleaned


def compute_returns(
    prices: PandasLike,
    *,
    method: str = "simple",
    dropna: bool = True,
) -> PandasLike:
    """Compute periodic returns from a price series.

    Args:
        prices: Ordered price levels for one or more assets.
        method: ``"simple"`` for percentage change, ``"log"`` for log returns.
        dropna: When ``True`` the initial NaN row is removed.

    Returns:
        Returns with the same dimensionality as ``prices``.

    Raises:
        TypeError: If *prices* is not a Series or DataFrame.
        ValueError: If *method* is not recognised.

    Example:
        >>> import pandas as pd
        >>> from qswarm import metrics
        >>> prices = pd.Series([100, 102, 101], dtype=float)
        >>> metrics.compute_returns(prices).round(4).tolist()
        [0.02, -0.0098]
    """

    frame, was_series = _coerce_to_dataframe(prices)
    numeric = _prep_numeric(frame)

    if method not in {"simple", "log"}:
        raise ValueError("method must be 'simple' or 'log'")

    if method == "log":
        returns = np.log(numeric / numeric.shift(1))
    else:
        returns = numeric.pct_change(fill_method=None)

    returns = returns.replace([np.inf, -np.inf], np.nan)
    if dropna:
        returns = returns.dropna(how="all")

    if was_series:
        return returns.iloc[:, 0]
    return returns


def portfolio_return_series(allocation: np.ndarray, returns: np.ndarray) -> np.ndarray:
    """Per-period weighted sum of every asset's return (``T`` values)."""

    return np.asarray(allocation, dtype=float) @ np.asarray(returns, dtype=float)


def equity_curve(series: np.ndarray) -> np.ndarray:
    """Compound periodic returns into a growth-of-one curve."""

    return np.cumprod(1.0 + np.asarray(series, dtype=float))


def max_drawdown(series: np.ndarray) -> float:
    """Largest ``(peak - value) / peak`` over *series* with a running peak.

    The running peak starts at ``-inf`` so the first observation becomes the
    first peak.

    Raises:
        UndefinedMetricError: If the running peak is ever zero or negative.

    Example:
        >>> import numpy as np
        >>> from qswarm.metrics import max_drawdown
        >>> max_drawdown(np.array([0.5, 0.25, 0.4]))
        0.5
    """

    values = np.asarray(series, dtype=float)
    if values.size == 0:
        return 0.0

    peaks = np.maximum.accumulate(values)
    if (peaks <= 0.0).any():
        first = float(peaks[np.argmax(peaks <= 0.0)])
        raise UndefinedMetricError(
            f"Drawdown undefined for non-positive peak {first:.6g}."
        )
    drawdowns = (peaks - values) / peaks
    return max(0.0, float(drawdowns.max()))


def portfolio_max_drawdown(
    allocation: np.ndarray,
    returns: np.ndarray,
    *,
    basis: DrawdownBasis = "returns",
) -> float:
    """Max drawdown of the weighted portfolio.

    With ``basis="returns"`` the drawdown is taken directly over the
    per-period weighted returns, so a negative first return is an error.
    ``basis="equity"`` compounds the returns first.
    """

    if basis not in DRAWDOWN_BASES:
        raise ValueError(f"basis must be one of {DRAWDOWN_BASES}, got {basis!r}")

    series = portfolio_return_series(allocation, returns)
    if basis == "equity":
        series = equity_curve(series)
    return max_drawdown(series)


__all__ = [
    "DRAWDOWN_BASES",
    "DrawdownBasis",
    "compute_returns",
    "portfolio_return_series",
    "equity_curve",
    "max_drawdown",
    "portfolio_max_drawdown",
]
