"""Visualisation helpers for QSwarm."""

from .allocation import plot_allocation
from .utils import require_matplotlib

__all__ = ["plot_allocation", "require_matplotlib"]
