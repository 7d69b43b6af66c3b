"""Shared console helpers for modforge.

All user-facing output goes through the module-level Rich ``console`` so
tests can capture or silence it in one place.
"""

from __future__ import annotations

from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_timestamp(timestamp_ms: int) -> str:
    """Render epoch milliseconds as local ``YYYY-MM-DD HH:MM:SS``."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def truncate(text: str, limit: int) -> str:
    """Shorten *text* to *limit* characters, marking the cut with ``...``.

    Examples::

        truncate("abcdef", 4) -> "a..."
        truncate("abc", 4)    -> "abc"
    """
    if len(text) <= limit:
        return text
    if limit <= 3:
        return text[:limit]
    return text[: limit - 3] + "..."


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_info(message: str) -> None:
    """Print a cyan informational message."""
    console.print(f"[bold cyan]{escape(message)}[/bold cyan]")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")


def print_plain(message: str = "") -> None:
    console.print(escape(message), highlight=False)
