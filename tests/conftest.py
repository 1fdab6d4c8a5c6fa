"""Shared pytest fixtures for deterministic optimisation data."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from qswarm import config
from qswarm.models import (
    Asset,
    HistoricalData,
    OptimizationConstraints,
    OptimizationContext,
    RiskBudget,
)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def make_context(
    returns,
    volatility,
    correlation,
    *,
    constraints: OptimizationConstraints | None = None,
    symbols=None,
) -> OptimizationContext:
    """Build a context directly from arrays, one asset per returns row."""

    vol = np.asarray(volatility, dtype=float)
    symbols = symbols or [f"A{index}" for index in range(len(vol))]
    assets = tuple(
        Asset(
            symbol=symbol,
            price=100.0,
            volume=0.0,
            volatility=float(vol[index]) if index < vol.size else 0.0,
        )
        for index, symbol in enumerate(symbols)
    )
    return OptimizationContext(
        assets=assets,
        constraints=constraints or OptimizationConstraints(),
        historical_data=HistoricalData(returns, volatility, correlation),
    )


@pytest.fixture()
def two_asset_context() -> OptimizationContext:
    """Two uncorrelated assets with strictly positive returns."""

    return make_context(
        [[0.01, 0.02], [0.03, 0.01]],
        [0.1, 0.2],
        [[1.0, 0.0], [0.0, 1.0]],
        constraints=OptimizationConstraints(
            risk_budget=RiskBudget(max_volatility=1.0, min_sharpe_ratio=-10.0)
        ),
    )


@pytest.fixture()
def sample_price_frame() -> pd.DataFrame:
    """Return a seeded price frame for multi-asset scenarios."""

    rng = np.random.default_rng(seed=42)
    dates = pd.date_range("2024-01-01", periods=10, freq="D")
    shocks = rng.normal(loc=0.001, scale=0.01, size=(len(dates), 3))
    cumulative = 1 + shocks
    prices = 100 * cumulative.cumprod(axis=0)
    frame = pd.DataFrame(prices, index=dates, columns=["AAA", "BBB", "CCC"])
    return frame.astype(float)


@pytest.fixture()
def rising_price_frame() -> pd.DataFrame:
    """Prices that rise every day, so every weighted return is positive."""

    rng = np.random.default_rng(seed=42)
    dates = pd.date_range("2024-01-01", periods=12, freq="D")
    growth = rng.uniform(0.001, 0.02, size=(len(dates), 3))
    prices = 100 * (1 + growth).cumprod(axis=0)
    frame = pd.DataFrame(prices, index=dates, columns=["AAA", "BBB", "CCC"])
    return frame.astype(float)


@pytest.fixture()
def price_csv(tmp_path: Path, rising_price_frame: pd.DataFrame):
    """Factory writing a Date-indexed price CSV under tmp_path."""

    def _factory(name: str = "demo_collated.csv", frame: pd.DataFrame | None = None) -> Path:
        target = tmp_path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        data = rising_price_frame if frame is None else frame
        data.to_csv(target, index_label="Date")
        return target

    return _factory


@pytest.fixture()
def context_factory():
    """Expose :func:`make_context` to tests."""

    return make_context
