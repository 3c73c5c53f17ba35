"""
Common utilities shared across CLI commands.

This module provides:
- Construction of the offline services from settings
- Shared console and UI instances
- Async CLI utilities
"""

import logging

from ..config import get_settings
from ..logging import configure_logging
from ..services import OfflineServices, build_services
from ..utils.ui import Icons, console, ui
from .async_utils import async_command, gather_with_progress, run_async

__all__ = [
    "async_command",
    "console",
    "gather_with_progress",
    "get_services",
    "Icons",
    "logger",
    "run_async",
    "setup_logging",
    "ui",
]

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure package logging from settings (debug when verbose)."""
    settings = get_settings()
    level = "debug" if verbose or settings.debug else settings.logging.level
    configure_logging(level=level, file_path=settings.logging.file)


def get_services() -> OfflineServices:
    """Offline services built from the global settings.

    Returns:
        OfflineServices; use it as an async context manager to close clients
    """
    return build_services(get_settings())

