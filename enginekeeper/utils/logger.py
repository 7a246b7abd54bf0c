"""
Logging utilities for enginekeeper.

All diagnostic output lives under the ``enginekeeper`` logger namespace.
Libraries embedding enginekeeper get a silent ``NullHandler`` until
:func:`setup_logging` is called (the CLI does so once per invocation,
mapping ``-v`` flags to levels via :func:`level_for_verbosity`).
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Optional

from enginekeeper.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "enginekeeper"

_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Logging formatter that tints the level name with ANSI colors.

    The record itself is left untouched so other handlers attached to the
    same logger still see the plain level name.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if not (color and self.use_color and self._should_use_color()):
            return super().format(record)

        original = record.levelname
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original

    @staticmethod
    def _should_use_color() -> bool:
        """Determine whether ANSI colors should be emitted."""
        if os.environ.get("NO_COLOR"):
            return False
        if os.environ.get("CI"):
            return False
        try:
            return sys.stderr.isatty()
        except (AttributeError, OSError):
            return False


def level_for_verbosity(verbose: int) -> int:
    """Map a ``-v`` count to a logging level.

    0 -> WARNING, 1 -> INFO, 2 or more -> DEBUG.
    """
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure the ``enginekeeper`` logger hierarchy.

    Safe to call repeatedly; each call replaces the previous handler.

    Args:
        level: Logging level (e.g., ``logging.INFO``, ``logging.DEBUG``).
        verbose: Use the timestamped format that includes logger names.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(
            ColoredFormatter(
                LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
                datefmt=LOG_DATE_FORMAT,
                use_color=not os.environ.get("NO_COLOR"),
            )
        )

        root_logger.addHandler(handler)
        root_logger.propagate = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the enginekeeper namespace.

    Args:
        name: Short component name (``"registry"``) or a fully qualified
            ``enginekeeper.*`` name.

    Returns:
        A logger instance under the ``enginekeeper`` hierarchy.
    """
    if not name or name == ROOT_LOGGER_NAME:
        logger = logging.getLogger(ROOT_LOGGER_NAME)
    elif name.startswith(f"{ROOT_LOGGER_NAME}."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")

    # Library-safe: stay silent until setup_logging() runs
    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger

