"""Public interface for QSwarm with minimal import side effects.

Configuration, exceptions and the input data model are imported eagerly.
Everything else is resolved on first attribute access so that
``import qswarm`` stays cheap and free of circular-import surprises.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

from .config import QSwarmSettings, build_settings, get_settings
from .exceptions import (
    DegenerateStateError,
    InvalidConfigError,
    InvalidInputError,
    QSwarmError,
    UndefinedMetricError,
)
from .models import (
    Asset,
    HistoricalData,
    MarketRegime,
    OptimizationConstraints,
    OptimizationContext,
    RiskBudget,
    SectorBounds,
)

_EAGER_EXPORTS: tuple[str, ...] = (
    "QSwarmSettings",
    "build_settings",
    "get_settings",
    "QSwarmError",
    "InvalidInputError",
    "InvalidConfigError",
    "DegenerateStateError",
    "UndefinedMetricError",
    "Asset",
    "HistoricalData",
    "MarketRegime",
    "OptimizationConstraints",
    "OptimizationContext",
    "RiskBudget",
    "SectorBounds",
)

_EXPORT_MAP: dict[str, tuple[str, str]] = {
    # Optimisation
    "QuantumSwarmOptimizer": ("qswarm.optimization", "QuantumSwarmOptimizer"),
    "optimize": ("qswarm.optimization", "optimize"),
    "OptimizationResult": ("qswarm.optimization", "OptimizationResult"),
    "OptimizationMetrics": ("qswarm.optimization", "OptimizationMetrics"),
    "evaluate_fitness": ("qswarm.optimization", "evaluate_fitness"),
    "classical_max_sharpe": ("qswarm.optimization.baseline", "classical_max_sharpe"),
    # Context construction
    "build_context": ("qswarm.context", "build_context"),
    "read_price_history": ("qswarm.context", "read_price_history"),
    "audit_allocation": ("qswarm.constraints", "audit_allocation"),
    # Workflows
    "optimise_price_file": ("qswarm.workflows", "optimise_price_file"),
    "optimise_all_portfolios": ("qswarm.workflows", "optimise_all_portfolios"),
    # Metrics
    "compute_returns": ("qswarm.metrics", "compute_returns"),
    "max_drawdown": ("qswarm.metrics", "max_drawdown"),
}

__all__ = (*_EAGER_EXPORTS, *_EXPORT_MAP)


def __getattr__(name: str) -> Any:  # pragma: no cover - thin dynamic dispatch
    """Resolve lazily exported attributes on first access and cache them."""

    try:
        module_name, attr_name = _EXPORT_MAP[name]
    except KeyError as error:
        available = ", ".join(sorted(__all__))
        message = (
            f"module 'qswarm' has no attribute {name!r}. "
            f"Available exports: {available}"
        )
        raise AttributeError(message) from error

    module = import_module(module_name)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:  # pragma: no cover - proxy to improve discoverability
    return sorted({*globals(), *__all__})


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from qswarm.constraints import audit_allocation  # noqa: F401
    from qswarm.context import build_context, read_price_history  # noqa: F401
    from qswarm.metrics import compute_returns, max_drawdown  # noqa: F401
    from qswarm.optimization import (  # noqa: F401
        OptimizationMetrics,
        OptimizationResult,
        QuantumSwarmOptimizer,
        evaluate_fitness,
        optimize,
    )
    from qswarm.optimization.baseline import classical_max_sharpe  # noqa: F401
    from qswarm.workflows import optimise_all_portfolios, optimise_price_file  # noqa: F401
