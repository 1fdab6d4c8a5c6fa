"""Optional matplotlib access for chart export."""

from __future__ import annotations

from typing import Optional


def require_matplotlib(backend: Optional[str] = "Agg"):
    """Return ``matplotlib.pyplot`` set up for writing charts to disk.

    Charts are only ever saved to files, so a non-interactive *backend* is
    selected before pyplot loads. Pass ``None`` to keep the current backend.

    Raises:
        RuntimeError: If matplotlib is not installed.
    """

    try:
        import matplotlib  # type: ignore
    except ImportError as exc:  # pragma: no cover - handled by callers
        raise RuntimeError(
            "matplotlib is required for allocation charts; install qswarm[plot]."
        ) from exc

    if backend is not None:
        matplotlib.use(backend)
    import matplotlib.pyplot as plt  # type: ignore

    return plt


__all__ = ["require_matplotlib"]
