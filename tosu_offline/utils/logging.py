"""
Shared logging utilities with Rich markup support.

Helpers prefix a message with a colored status icon. The message may carry
%-style placeholders filled from ``*args``.
"""

import logging
from typing import Any


def _resolve(logger_name: str | None, logger: logging.Logger | None) -> logging.Logger:
    if logger is not None:
        return logger
    return logging.getLogger(logger_name) if logger_name else logging.getLogger()


def log_success(
    message: str,
    *args: Any,
    logger_name: str | None = None,
    logger: logging.Logger | None = None,
    **kwargs: Any,
) -> None:
    """
    Log a success message with green checkmark.

    Args:
        message: Message to log
        *args: Values for placeholders in message
        logger_name: Name of logger to use (if logger not provided)
        logger: Logger instance to use (overrides logger_name)
        **kwargs: Keyword arguments for logger
    """
    _resolve(logger_name, logger).info("[green]✓[/green] " + message, *args, **kwargs)


def log_warning(
    message: str,
    *args: Any,
    logger_name: str | None = None,
    logger: logging.Logger | None = None,
    **kwargs: Any,
) -> None:
    """Log a warning message with yellow warning sign."""
    _resolve(logger_name, logger).warning("[yellow]⚠[/yellow] " + message, *args, **kwargs)
