"""
Rich UI utilities for the maintenance CLI.

Usage:
    from tosu_offline.utils.ui import console, ui

    ui.success("Reconciled downloads")
    with ui.spinner("Fetching books..."):
        books = await proxy.get_books_fresh()

    table = ui.create_table("Books", columns=["ID", "Title"])
    console.print(table)
"""

from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from rich.box import DOUBLE, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.rule import Rule
from rich.status import Status
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

# =============================================================================
# Custom Theme
# =============================================================================

CONTENT_THEME = Theme(
    {
        # Status colors
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "debug": "dim",
        "muted": "dim white",
        # UI elements
        "header": "bold magenta",
        "subheader": "bold blue",
        "accent": "bold cyan",
        # Data types
        "id": "cyan",
        "title": "bold white",
        "path": "italic blue",
        "size": "blue",
        # Status indicators
        "status.connected": "green",
        "status.disconnected": "red",
        "status.cached": "cyan",
        "status.fresh": "green",
        "status.offline": "yellow",
    }
)

console = Console(theme=CONTENT_THEME, highlight=True, emoji=True)


class Icons:
    """Unicode icons for consistent visual feedback."""

    SUCCESS = "✓"
    ERROR = "✗"
    WARNING = "⚠"
    INFO = "ℹ"
    BULLET = "•"

    AUDIO = "🎧"
    BOOK = "📚"
    VIDEO = "🎬"
    CENTER = "📍"

    FOLDER = "📁"
    DATABASE = "🗄️"
    CACHE = "💾"
    DOWNLOAD = "⬇️"
    SYNC = "🔄"
    CLOUD = "☁️"


class UIHelper:
    """Central UI helper for consistent visual output."""

    def __init__(self, console: Console):
        self.console = console
        self.icons = Icons

    # -------------------------------------------------------------------------
    # Status Messages
    # -------------------------------------------------------------------------

    def _status(self, prefix: str, style: str, message: str, details: str | None) -> None:
        text = Text()
        text.append(f"{prefix} ", style=style)
        text.append_text(Text.from_markup(message))
        if details:
            text.append(f"\n   {details}", style="muted")
        self.console.print(text)

    def success(self, message: str, details: str | None = None) -> None:
        self._status(Icons.SUCCESS, "success", message, details)

    def error(self, message: str, details: str | None = None) -> None:
        self._status(Icons.ERROR, "error", f"[error]{message}[/error]", details)

    def warning(self, message: str, details: str | None = None) -> None:
        self._status(Icons.WARNING, "warning", message, details)

    def info(self, message: str, details: str | None = None) -> None:
        self._status(Icons.INFO, "info", message, details)

    def muted(self, message: str) -> None:
        self.console.print(f"[muted]{message}[/muted]")

    # -------------------------------------------------------------------------
    # Headers
    # -------------------------------------------------------------------------

    def header(self, title: str, subtitle: str | None = None, icon: str | None = None) -> None:
        """Print a styled header banner."""
        content = Text()
        content.append(f"{icon} {title}" if icon else title, style="header")
        if subtitle:
            content.append(f"\n{subtitle}", style="muted")
        self.console.print(Panel(content, box=DOUBLE, border_style="header", padding=(1, 2)))

    def section(self, title: str, icon: str | None = None) -> None:
        """Print a section header with rule."""
        self.console.print()
        self.console.print(Rule(f"{icon} {title}" if icon else title, style="subheader", align="left"))

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    @contextmanager
    def spinner(self, message: str, style: str = "info") -> Generator[Status]:
        """Context manager for a spinner with status updates."""
        with self.console.status(f"[{style}]{message}[/{style}]", spinner="dots") as status:
            yield status

    # -------------------------------------------------------------------------
    # Tables & Panels
    # -------------------------------------------------------------------------

    def create_table(self, title: str | None = None, columns: list[str] | None = None) -> Table:
        """Create a styled table."""
        table = Table(
            title=title,
            box=ROUNDED,
            header_style="bold cyan",
            border_style="dim",
            row_styles=["", "dim"],
        )
        for col in columns or []:
            table.add_column(col)
        return table

    def key_value_table(self, data: dict[str, Any], title: str | None = None) -> Table:
        """Create a two-column key-value table."""
        table = Table(title=title, show_header=False, box=SIMPLE, padding=(0, 1))
        table.add_column("Key", style="bold cyan", no_wrap=True)
        table.add_column("Value", style="white")
        for key, value in data.items():
            table.add_row(key, str(value) if value is not None else "[dim]N/A[/dim]")
        return table

    def stats_panel(self, stats: dict[str, Any], title: str | None = None, icon: str | None = None) -> Panel:
        """Create a stats display panel."""
        lines = []
        for key, value in stats.items():
            if isinstance(value, float):
                value = f"{value:.2f}"
            lines.append(f"[bold]{key}:[/bold] {value}")
        label = f"{icon} {title}" if icon and title else title
        return Panel("\n".join(lines), title=label, border_style="cyan", box=ROUNDED, padding=(1, 2))

    # -------------------------------------------------------------------------
    # Specialized Displays
    # -------------------------------------------------------------------------

    def connection_status(self, connected: bool, name: str) -> Text:
        text = Text()
        if connected:
            text.append(f"{Icons.SUCCESS} ", style="status.connected")
            text.append(name, style="bold")
            text.append(" online", style="status.connected")
        else:
            text.append(f"{Icons.ERROR} ", style="status.disconnected")
            text.append(name, style="bold")
            text.append(" offline", style="status.disconnected")
        return text

    def source_badge(self, source: str) -> Text:
        """Where a catalog read came from."""
        styles = {"cache": "status.cached", "network": "status.fresh", "none": "status.offline"}
        return Text(source.upper(), style=styles.get(source, "muted"))

    def size_display(self, bytes_size: int) -> Text:
        """Format file size nicely."""
        if bytes_size < 1024:
            return Text(f"{bytes_size} B", style="size")
        elif bytes_size < 1024**2:
            return Text(f"{bytes_size / 1024:.1f} KB", style="size")
        elif bytes_size < 1024**3:
            return Text(f"{bytes_size / (1024**2):.1f} MB", style="size")
        else:
            return Text(f"{bytes_size / (1024**3):.2f} GB", style="size")

    def timestamp_ms(self, millis: int | None) -> Text:
        """Display a millisecond epoch timestamp."""
        if millis is None:
            return Text("never", style="muted")
        return Text(datetime.fromtimestamp(millis / 1000).strftime("%Y-%m-%d %H:%M:%S"), style="muted")


ui = UIHelper(console)

__all__ = ["console", "ui", "Icons", "UIHelper", "CONTENT_THEME"]
