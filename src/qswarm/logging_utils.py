"""File logging for optimisation runs."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from qswarm.config import get_settings
from qswarm.exceptions import InvalidConfigError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def resolve_level(level: str) -> int:
    """Translate a level name such as ``"debug"`` into its numeric value.

    Raises:
        InvalidConfigError: If *level* is not a standard logging level name.
    """

    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise InvalidConfigError(f"Unknown logging level {level!r}")
    return value


def log_file_path(log_dir: Path, run_name: Optional[str] = None) -> Path:
    """Return ``qswarm[_<run_name>]_<UTC timestamp>.log`` under *log_dir*."""

    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M%S")
    stem = "qswarm"
    if run_name:
        stem = f"{stem}_{_UNSAFE_CHARS.sub('-', run_name).strip('-') or 'run'}"
    return Path(log_dir) / f"{stem}_{timestamp}.log"


def configure_logging(
    log_dir: Path | None = None,
    level: str | None = None,
    *,
    run_name: str | None = None,
) -> Path:
    """Send ``qswarm`` log records to a fresh file for this run.

    Args:
        log_dir: Destination folder. Defaults to ``QSWARM_LOG_DIR``.
        level: Level name for the ``qswarm`` loggers. Defaults to
            ``QSWARM_LOG_LEVEL``. At ``DEBUG`` the optimizer records the best
            fitness of every iteration.
        run_name: Optional label, usually the portfolio name, embedded in the
            file name.

    Returns:
        Path to the log file.

    Raises:
        InvalidConfigError: If *level* is not a logging level name.
    """

    settings = get_settings()
    numeric_level = resolve_level(level or settings.log_level)
    target_dir = Path(log_dir or settings.log_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_file_path(target_dir, run_name)

    logging.basicConfig(level=numeric_level, filename=str(log_path), format=LOG_FORMAT)
    logging.getLogger("qswarm").setLevel(numeric_level)
    logging.getLogger(__name__).info("Logging initialised: %s", log_path)
    return log_path


__all__ = ["LOG_FORMAT", "configure_logging", "log_file_path", "resolve_level"]
