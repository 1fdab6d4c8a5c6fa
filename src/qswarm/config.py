"""Central configuration utilities for QSwarm."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

from qswarm.exceptions import InvalidConfigError
from qswarm.metrics import DRAWDOWN_BASES

_DEFAULT_DATA_DIR = Path("data")

DEFAULT_PARTICLES = 100
DEFAULT_ITERATIONS = 1000
DEFAULT_CONVERGENCE_THRESHOLD = 1e-6


@dataclass(frozen=True)
class QSwarmSettings:
    """Application-level settings with directory layout and search defaults."""

    data_dir: Path = field(default_factory=lambda: _DEFAULT_DATA_DIR)
    export_dir: Path = field(init=False)
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    log_level: str = "INFO"
    particles: int = DEFAULT_PARTICLES
    iterations: int = DEFAULT_ITERATIONS
    convergence_threshold: float = DEFAULT_CONVERGENCE_THRESHOLD
    max_workers: int = 1
    drawdown_basis: str = "returns"

    def __post_init__(self) -> None:  # pragma: no cover - dataclass hook
        object.__setattr__(self, "data_dir", self.data_dir.resolve())
        object.__setattr__(self, "export_dir", self.data_dir / "exports")

    def ensure_directories(self) -> None:
        """Create core directories if needed."""

        for directory in (self.export_dir, self.log_dir):
            directory.mkdir(parents=True, exist_ok=True)


def _path_from_env(var_name: str, default: Path) -> Path:
    override = os.getenv(var_name)
    if not override:
        return default
    return Path(override).expanduser()


def _int_from_env(var_name: str, default: int) -> int:
    override = os.getenv(var_name)
    if not override:
        return default
    try:
        value = int(override)
    except ValueError as exc:
        raise InvalidConfigError(f"{var_name} must be an integer, got {override!r}") from exc
    if value < 1:
        raise InvalidConfigError(f"{var_name} must be at least 1, got {value}")
    return value


def _float_from_env(var_name: str, default: float) -> float:
    override = os.getenv(var_name)
    if not override:
        return default
    try:
        value = float(override)
    except ValueError as exc:
        raise InvalidConfigError(f"{var_name} must be a number, got {override!r}") from exc
    if math.isnan(value) or value < 0:
        raise InvalidConfigError(f"{var_name} must be non-negative, got {override!r}")
    return value


def _choice_from_env(var_name: str, default: str, choices: tuple[str, ...]) -> str:
    override = os.getenv(var_name)
    if not override:
        return default
    value = override.strip().lower()
    if value not in choices:
        raise InvalidConfigError(f"{var_name} must be one of {choices}, got {override!r}")
    return value


def build_settings(base_dir: Optional[Path] = None) -> QSwarmSettings:
    """Construct settings, honouring environment overrides where provided."""

    if base_dir is None:
        data_dir = _path_from_env("QSWARM_DATA_DIR", _DEFAULT_DATA_DIR)
    else:
        data_dir = base_dir

    return QSwarmSettings(
        data_dir=data_dir,
        log_dir=_path_from_env("QSWARM_LOG_DIR", Path("logs")),
        log_level=os.getenv("QSWARM_LOG_LEVEL", "INFO"),
        particles=_int_from_env("QSWARM_PARTICLES", DEFAULT_PARTICLES),
        iterations=_int_from_env("QSWARM_ITERATIONS", DEFAULT_ITERATIONS),
        convergence_threshold=_float_from_env(
            "QSWARM_CONVERGENCE_THRESHOLD", DEFAULT_CONVERGENCE_THRESHOLD
        ),
        max_workers=_int_from_env("QSWARM_MAX_WORKERS", 1),
        drawdown_basis=_choice_from_env("QSWARM_DRAWDOWN_BASIS", "returns", DRAWDOWN_BASES),
    )


@lru_cache(maxsize=1)
def get_settings() -> QSwarmSettings:
    """Return a cached settings instance."""

    return build_settings()


__all__ = [
    "QSwarmSettings",
    "build_settings",
    "get_settings",
    "DEFAULT_PARTICLES",
    "DEFAULT_ITERATIONS",
    "DEFAULT_CONVERGENCE_THRESHOLD",
]
