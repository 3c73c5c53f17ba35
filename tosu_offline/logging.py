"""
Rich-enhanced logging configuration for tosu_offline.

Every module logs through ``logging.getLogger(__name__)``, so all records
land under the ``tosu_offline`` logger configured here. Nothing is
configured at import time; applications opt in.

.. warning::
    ``rich_tracebacks=True`` installs a process-wide traceback handler.
    Leave it off when embedding the library in another application.

Usage:
    from tosu_offline.logging import configure_logging, get_logger

    configure_logging(level="info", file_path="logs/offline.log")
    logger = get_logger("downloads")
    logger.info("[green]✓[/green] Track downloaded")
"""

import logging
import sys
from pathlib import Path
from typing import Literal

from rich.logging import RichHandler
from rich.traceback import install as install_rich_traceback

from .utils.ui import console as rich_console

# All package loggers live under this name
MODULE_LOGGER_NAME = "tosu_offline"

LogLevel = Literal["debug", "info", "warning", "error", "critical"]

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _get_log_level(level: LogLevel | str | int) -> int:
    """Convert level string to logging constant."""
    if isinstance(level, int):
        return level

    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
        "critical": logging.CRITICAL,
    }
    return level_map.get(level.lower(), logging.INFO)


def configure_logging(
    level: LogLevel | str | int = "info",
    console: bool = True,
    file_path: str | Path | None = None,
    file_log_level: LogLevel | str | int | None = None,
    use_rich: bool = True,
    rich_tracebacks: bool = False,
    show_path: bool = False,
    markup: bool = True,
) -> logging.Logger:
    """
    Configure logging for the package.

    Args:
        level: Log level for console output
        console: Whether to enable console logging
        file_path: Optional file path for plain-text file logging
        file_log_level: Log level for file output (defaults to level)
        use_rich: Use a RichHandler for the console
        rich_tracebacks: Install Rich's global traceback handler
        show_path: Show file path in console logs
        markup: Enable rich markup in log messages

    Returns:
        The package logger
    """
    log_level = _get_log_level(level)
    file_level = _get_log_level(file_log_level) if file_log_level else log_level

    if use_rich and rich_tracebacks:
        install_rich_traceback(console=rich_console, show_locals=False, word_wrap=True)

    logger = logging.getLogger(MODULE_LOGGER_NAME)
    logger.setLevel(min(log_level, file_level) if file_path else log_level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    if console:
        handler: logging.Handler
        if use_rich:
            handler = RichHandler(
                level=log_level,
                console=rich_console,
                show_path=show_path,
                rich_tracebacks=rich_tracebacks,
                markup=markup,
                log_time_format="[%X]",
                keywords=["cache", "download", "offline", "CMS"],
            )
        else:
            handler = logging.StreamHandler(sys.stdout)
            handler.setLevel(log_level)
            handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(handler)

    # File handler - standard formatting for parseable logs
    if file_path:
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(file_path, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a package logger.

    Example:
        logger = get_logger("cli")  # tosu_offline.cli
    """
    if name:
        return logging.getLogger(f"{MODULE_LOGGER_NAME}.{name}")
    return logging.getLogger(MODULE_LOGGER_NAME)


def set_level(level: LogLevel | str | int) -> None:
    """Change the level of the package logger and its handlers."""
    log_level = _get_log_level(level)
    logger = logging.getLogger(MODULE_LOGGER_NAME)
    logger.setLevel(log_level)
    for handler in logger.handlers:
        handler.setLevel(log_level)


def enable_debug_logging() -> None:
    """Enable debug logging with rich output for troubleshooting."""
    configure_logging(level="debug", use_rich=True)


class LogContext:
    """
    Context manager for temporarily changing the package log level.

    Example:
        with LogContext("debug"):
            await manager.reconcile()
    """

    def __init__(self, level: LogLevel | str | int):
        self._target_level = _get_log_level(level)
        self._original_level: int | None = None

    def __enter__(self) -> "LogContext":
        logger = logging.getLogger(MODULE_LOGGER_NAME)
        self._original_level = logger.level
        logger.setLevel(self._target_level)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._original_level is not None:
            logging.getLogger(MODULE_LOGGER_NAME).setLevel(self._original_level)


__all__ = [
    "configure_logging",
    "enable_debug_logging",
    "get_logger",
    "LogContext",
    "MODULE_LOGGER_NAME",
    "set_level",
]
