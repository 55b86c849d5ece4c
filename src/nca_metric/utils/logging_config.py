"""
Logging configuration for NCA Metric.

Modules obtain loggers through ``get_logger(__name__)``; entry points call
``setup_logging()`` once to attach a console handler.
"""

import logging
import os
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

_ROOT_LOGGER_NAME = "nca_metric"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for *name* (normally the calling module's ``__name__``)."""
    return logging.getLogger(name)


def setup_logging(
    level: Optional[Union[int, str]] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Configure the package logger with a single stream handler.

    Calling this more than once replaces the existing handler instead of
    stacking duplicates.

    Args:
        level: Logging level (name or number). Defaults to the
            ``NCA_LOG_LEVEL`` environment variable, or ``INFO``.
        fmt: Log record format string.

    Returns:
        The configured package logger.
    """
    if level is None:
        level = os.getenv("NCA_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    pkg_logger = logging.getLogger(_ROOT_LOGGER_NAME)
    pkg_logger.setLevel(level)

    for handler in list(pkg_logger.handlers):
        if getattr(handler, "_nca_metric_handler", False):
            pkg_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt, datefmt=DEFAULT_DATEFMT))
    handler._nca_metric_handler = True  # type: ignore[attr-defined]
    pkg_logger.addHandler(handler)
    return pkg_logger
