"""Exception hierarchy for QSwarm.

Every error derives from :class:`QSwarmError`, itself a ``ValueError`` so
callers that already guard optimisation runs with ``except ValueError`` keep
working.
"""

from __future__ import annotations


class QSwarmError(ValueError):
    """Base class for optimisation failures."""


class InvalidInputError(QSwarmError):
    """Raised when an optimisation context is malformed or misaligned."""


class InvalidConfigError(QSwarmError):
    """Raised when optimizer or settings values are out of range."""


class DegenerateStateError(QSwarmError):
    """Raised when the search reaches a state it cannot continue from."""


class UndefinedMetricError(QSwarmError):
    """Raised when a metric would require dividing by zero or a non-positive base."""


__all__ = [
    "QSwarmError",
    "InvalidInputError",
    "InvalidConfigError",
    "DegenerateStateError",
    "UndefinedMetricError",
]
