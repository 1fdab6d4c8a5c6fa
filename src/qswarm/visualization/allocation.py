"""Allocation pie charts for optimisation results."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from qswarm.optimization.models import OptimizationResult
from qswarm.visualization.utils import require_matplotlib


def plot_allocation(
    result: OptimizationResult,
    destination: Path,
    *,
    title: Optional[str] = None,
) -> Path:
    """Save a pie chart of the non-zero weights in *result* to *destination*.

    Raises:
        ValueError: If the allocation has no positive weight.
        RuntimeError: If matplotlib is not installed.
    """

    weights = result.non_zero()
    if not weights:
        raise ValueError("No positive weights to plot")

    plt = require_matplotlib()
    destination = Path(destination).expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots()
    ax.pie(list(weights.values()), labels=list(weights.keys()), autopct="%1.1f%%", startangle=90)
    ax.axis("equal")
    ax.set_title(title or "Portfolio Allocation")
    fig.savefig(destination)
    plt.close(fig)
    return destination


__all__ = ["plot_allocation"]
