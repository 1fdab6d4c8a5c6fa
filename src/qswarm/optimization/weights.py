"""Helpers for generating and post-processing allocation vectors."""

from __future__ import annotations

import numpy as np

from qswarm.exceptions import DegenerateStateError

ATOL: float = 1e-12
RTOL: float = 1e-9


def normalize_allocation(raw: np.ndarray) -> np.ndarray:
    """Return *raw* scaled so its entries add up to one.

    Args:
        raw: One allocation (``N``) or a stack of allocations (``P x N``) with
            non-negative entries. Each row is normalised independently.

    Returns:
        New array with the same shape as *raw*.

    Raises:
        DegenerateStateError: If any row sums to zero (every weight clamped
            away) or contains non-finite values.
    """

    values = np.asarray(raw, dtype=float)
    if not np.isfinite(values).all():
        raise DegenerateStateError("Allocation contains non-finite weights.")

    totals = values.sum(axis=-1, keepdims=True)
    if (totals <= ATOL).any():
        raise DegenerateStateError(
            "Allocation sums to zero after clamping; cannot normalise."
        )
    return values / totals


def random_allocation(rng: np.random.Generator, size: int, count: int | None = None) -> np.ndarray:
    """Draw ``U[0, 1)`` weights and L1-normalise them.

    Per-asset bounds from the constraint set are not applied.
    """

    shape = (size,) if count is None else (count, size)
    return normalize_allocation(rng.random(shape))


def clamp_unit(values: np.ndarray) -> np.ndarray:
    """Clip every entry into ``[0, 1]``."""

    return np.clip(values, 0.0, 1.0)


def is_valid_allocation(weights: np.ndarray, *, atol: float = RTOL) -> bool:
    """Return ``True`` when *weights* lie in ``[0, 1]`` and sum to one."""

    values = np.asarray(weights, dtype=float)
    if values.size == 0 or not np.isfinite(values).all():
        return False
    in_range = bool(((values >= 0.0) & (values <= 1.0)).all())
    return in_range and bool(np.isclose(values.sum(), 1.0, rtol=0.0, atol=atol))


__all__ = [
    "ATOL",
    "RTOL",
    "normalize_allocation",
    "random_allocation",
    "clamp_unit",
    "is_valid_allocation",
]
