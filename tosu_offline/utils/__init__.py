"""
Utility modules.
"""

from .logging import log_success, log_warning
from .ui import Icons, UIHelper, console, ui

__all__ = [
    "console",
    "ui",
    "Icons",
    "UIHelper",
    "log_success",
    "log_warning",
]
