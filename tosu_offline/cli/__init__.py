"""
CLI module for the offline content tool.

Subcommands organized by domain:
- catalog: Browse the cached catalog
- downloads: Manage offline downloads
"""

from .common import console, get_services, ui

__all__ = ["console", "get_services", "ui"]
