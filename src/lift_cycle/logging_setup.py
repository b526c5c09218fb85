"""Central logging configuration for lift-cycle."""

from __future__ import annotations

import logging
import os
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "lift_cycle"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5 MB per log file
DEFAULT_BACKUP_COUNT = 7
LOG_LEVEL_ENV_VAR = "LIFT_CYCLE_LOG_LEVEL"

_configured: bool = False


def _resolve_level(level: str | None) -> int:
    """Translate a textual level into the numeric value logging expects."""

    candidate = str(level or os.environ.get(LOG_LEVEL_ENV_VAR) or "INFO").upper()
    numeric_level = logging.getLevelName(candidate)
    if isinstance(numeric_level, int):
        return numeric_level

    print(
        f"lift-cycle logger: unknown log level '{candidate}', defaulting to INFO.",
        file=sys.stderr,
    )
    return logging.INFO


def _build_formatter() -> logging.Formatter:
    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    formatter.converter = time.gmtime
    return formatter


def configure_logging(
    *,
    log_path: Path | None = None,
    level: str | None = None,
    to_console: bool = False,
    max_bytes: int | None = None,
    backup_count: int | None = None,
    force: bool = False,
) -> logging.Logger:
    """
    Attach a rotating file handler (and optionally stderr) to the package logger.

    Every module logs through logging.getLogger(__name__), so handlers live
    on the "lift_cycle" parent only.  Calling again without force only
    adjusts the level.
    """
    global _configured
    logger = logging.getLogger(LOGGER_NAME)

    if _configured and not force:
        if level is not None:
            logger.setLevel(_resolve_level(level))
        return logger

    if force:
        reset_logging()

    logger.setLevel(_resolve_level(level))
    formatter = _build_formatter()

    if log_path is not None:
        resolved_path = Path(log_path)
        try:
            resolved_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                resolved_path,
                maxBytes=max_bytes or DEFAULT_MAX_BYTES,
                backupCount=backup_count or DEFAULT_BACKUP_COUNT,
                encoding="utf-8",
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as exc:
            print(
                f"lift-cycle logger: unable to access log file {resolved_path}: {exc}",
                file=sys.stderr,
            )

    if to_console:
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    logger.propagate = False
    _configured = True
    return logger


def reset_logging() -> None:
    """Tear down handlers so tests can reconfigure the logger cleanly."""

    global _configured
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    _configured = False
