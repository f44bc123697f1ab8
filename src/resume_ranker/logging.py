"""Logging configuration for resume-ranker.

Sets up standard logging to stderr with a consistent format.
Import the ``logger`` instance from this module throughout the codebase.

Modules that log through ``logging.getLogger(__name__)`` (the ranker,
keyword extraction, similarity, exporters) sit under the
``resume_ranker`` package logger instead.  :func:`configure_file_logging`
attaches its file handler to both, so a run log holds every degradation
warning, not only the pipeline's progress messages.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path

# Create logger
logger = logging.getLogger("resume-ranker")
logger.setLevel(logging.INFO)

# Parent of every module-level logger in the package
package_logger = logging.getLogger("resume_ranker")

handler = logging.StreamHandler(sys.stderr)
handler.setLevel(logging.INFO)

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT)
handler.setFormatter(formatter)

logger.addHandler(handler)

DEFAULT_LOG_DIR = "data/logs"


def log_file_name(run_label: str | None = None, *, now: datetime | None = None) -> str:
    """Name of a run log: ``resume-ranker[_<label>]_<timestamp>.log``.

    *run_label* is usually the job-title slug, so logs for different
    openings sort together.
    """
    timestamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    if run_label:
        return f"resume-ranker_{run_label}_{timestamp}.log"
    return f"resume-ranker_{timestamp}.log"


def configure_file_logging(
    log_dir: str = DEFAULT_LOG_DIR,
    *,
    level: int = logging.INFO,
    run_label: str | None = None,
) -> logging.FileHandler:
    """Add a timestamped file handler for one ranking run.

    Creates ``log_dir`` if it does not exist.  Returns the handler so
    callers (or tests) can pass it to :func:`remove_file_logging`.

    Args:
        log_dir: Directory for log files.  Created automatically.
        level: Logging level for the file handler (default: INFO).
        run_label: Optional slug inserted into the file name.

    Returns:
        The :class:`logging.FileHandler` that was added.
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    filename = log_path / log_file_name(run_label)

    file_handler = logging.FileHandler(str(filename), encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT))

    # Both loggers must pass records at the lowest requested level
    for target in (logger, package_logger):
        if level < target.getEffectiveLevel():
            target.setLevel(level)
        target.addHandler(file_handler)

    logger.info("Writing run log to %s", filename)
    return file_handler


def remove_file_logging(file_handler: logging.Handler) -> None:
    """Detach a handler added by :func:`configure_file_logging` and close it."""
    for target in (logger, package_logger):
        target.removeHandler(file_handler)
    file_handler.close()


__all__ = [
    "configure_file_logging",
    "log_file_name",
    "logger",
    "package_logger",
    "remove_file_logging",
]
