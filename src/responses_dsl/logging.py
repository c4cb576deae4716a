"""Logging setup for responses-dsl.

Library modules log through ``logging.getLogger(__name__)`` under the
``responses_dsl`` namespace. ``configure_logger`` attaches a single handler
to that namespace (a file when ``log_path`` is given, stderr otherwise) and
avoids duplicate handlers across repeated calls.
"""

from __future__ import annotations

import logging
from pathlib import Path

from responses_dsl.config import LogLevel

LOGGER_NAME = "responses_dsl"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logger(
    log_level: LogLevel | str = LogLevel.INFO,
    *,
    log_path: Path | str | None = None,
) -> logging.Logger:
    """Configure and return the package logger.

    Subsequent calls update the level and return the same logger without
    adding handlers.
    """

    logger = logging.getLogger(LOGGER_NAME)

    level_value = _to_logging_level(log_level)
    logger.setLevel(level_value)
    logger.propagate = False

    if not logger.handlers:
        handler: logging.Handler
        if log_path is not None:
            path = Path(log_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(path, encoding="utf-8")
        else:
            handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(level_value)
    return logger


def _to_logging_level(value: LogLevel | str) -> int:
    mapping = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
    }
    if isinstance(value, LogLevel):
        return mapping[value]
    if isinstance(value, str):
        try:
            return mapping[LogLevel(value.lower())]
        except ValueError:
            return logging.WARNING
    return logging.WARNING


__all__ = ["LOGGER_NAME", "configure_logger", "_to_logging_level"]
