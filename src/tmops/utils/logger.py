"""
Logging configuration for tmops.

This module provides centralized logging configuration for the library and
the CLI. Output goes to stderr so it never mixes with rendered CLI tables.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

_DEFAULT_NAME = "tmops"
_DEFAULT_LEVEL = "WARNING"
_LEVEL_ENV = "TMOPS_LOG_LEVEL"
_FILE_ENV = "TMOPS_LOG_FILE"


def _resolve_level() -> int:
    """Return the configured log level, honoring the env override."""
    raw = os.getenv(_LEVEL_ENV, _DEFAULT_LEVEL).strip().upper()
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else logging.WARNING


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Child loggers (`tmops.core.containers`, ...) propagate to the package
    logger, which is configured once and does not propagate further.

    Args:
        name: Logger name. If None, uses the package logger.

    Returns:
        Configured logger instance.
    """
    root = logging.getLogger(_DEFAULT_NAME)
    if not root.handlers:
        configure_logger(root)

    if name is None or name == _DEFAULT_NAME:
        return root
    return logging.getLogger(name)


def configure_logger(logger_instance: logging.Logger) -> None:
    """
    Configure a logger instance with a console handler and optional file handler.

    Args:
        logger_instance: Logger instance to configure.
    """
    logger_instance.setLevel(_resolve_level())
    # handlers live here; stop records reaching the root logger a second time
    logger_instance.propagate = False

    formatter = logging.Formatter(
        "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s"
    )

    log_file = os.getenv(_FILE_ENV)
    if log_file:
        try:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path)
            file_handler.setFormatter(formatter)
            logger_instance.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: Could not set up file logging: {e}", file=sys.stderr)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger_instance.addHandler(console_handler)


__all__ = ["get_logger", "configure_logger"]
