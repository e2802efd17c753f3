"""Centralized logging configuration using loguru."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

logger.remove()
_console_handler = logger.add(sys.stderr, level="INFO", format=CONSOLE_FORMAT, colorize=True)


def set_console_level(level: str) -> None:
    """Replace the console handler with one at ``level`` (e.g. "DEBUG")."""
    global _console_handler
    logger.remove(_console_handler)
    _console_handler = logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT, colorize=True)


def configure_file_logging(logs_dir: Union[str, Path] = "logs") -> List[int]:
    """Add rotating file handlers for full and error-only logs.

    The engine never writes files on its own; front ends opt in by calling
    this once at startup.

    Args:
        logs_dir: Directory for the log files (created if missing)

    Returns:
        Handler ids, usable with ``logger.remove``
    """
    logs_path = Path(logs_dir)
    logs_path.mkdir(parents=True, exist_ok=True)
    return [
        logger.add(
            logs_path / "drstrack_{time}.log",
            rotation="50 MB",
            retention="10 days",
            level="DEBUG",
            format=FILE_FORMAT,
            enqueue=True,  # worker threads log too
        ),
        logger.add(
            logs_path / "errors_{time}.log",
            rotation="10 MB",
            retention="30 days",
            level="ERROR",
            format=FILE_FORMAT,
            enqueue=True,
        ),
    ]


def get_logger(name: Optional[str] = None):
    """Get a logger bound to ``name`` (usually ``__name__``)."""
    if name:
        return logger.bind(name=name)
    return logger


def log_performance(operation: str, duration_ms: float, threshold_ms: float = 100.0) -> None:
    """Debug-log an operation's duration, warning when it exceeds ``threshold_ms``."""
    if duration_ms > threshold_ms:
        logger.warning(f"Slow operation: {operation} took {duration_ms:.2f}ms (threshold: {threshold_ms}ms)")
    else:
        logger.debug(f"Performance: {operation} took {duration_ms:.2f}ms")


__all__ = ["logger", "get_logger", "log_performance", "configure_file_logging", "set_console_level"]
