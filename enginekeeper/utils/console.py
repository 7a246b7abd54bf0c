"""
Console output utilities for enginekeeper using Rich.

This module provides user-facing output helpers for CLI commands.
For diagnostic or debug output, use :mod:`enginekeeper.utils.logger`.

Guidelines:
- print_* functions: user-facing status messages
- print_table / confirm: structured or interactive CLI output
- Logging should never go through this module
"""

from __future__ import annotations

import os
import sys
import threading
from typing import Any, Callable, Dict, List, Optional

from rich.table import Table
from rich.theme import Theme
from rich.console import Console

# ---------------------------------------------------------------------------
# Theme configuration
# ---------------------------------------------------------------------------

ENGINEKEEPER_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
        "highlight": "bold magenta",
    }
)

_STATUS_COLORS: Dict[str, str] = {
    "compatible": "green",
    "no-compatible-version": "yellow",
    "unavailable": "red",
}

_UPDATE_TYPE_COLORS: Dict[str, str] = {
    "major": "red",
    "minor": "yellow",
    "patch": "green",
    "new": "cyan",
    "downgrade": "red",
    "update": "yellow",
}

# ---------------------------------------------------------------------------
# Console lifecycle management
# ---------------------------------------------------------------------------

_console: Optional[Console] = None
_console_lock = threading.Lock()


def _should_use_color() -> bool:
    """Return True if colored output should be enabled."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError):
        return False


def _get_console() -> Console:
    """Return a singleton Rich Console instance."""
    global _console

    if _console is None:
        with _console_lock:
            if _console is None:
                use_color = _should_use_color()
                _console = Console(
                    theme=ENGINEKEEPER_THEME,
                    no_color=not use_color,
                    highlight=use_color,
                )
    return _console


def reconfigure_console() -> None:
    """Reset the global console instance.

    Needed when NO_COLOR is toggled after the first message was printed
    (the CLI does this for ``--no-color``).
    """
    global _console
    with _console_lock:
        _console = None


# ---------------------------------------------------------------------------
# Status message helpers
# ---------------------------------------------------------------------------


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    """Print a success message."""
    _get_console().print(f"{prefix} {message}", style="success")


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    """Print an error message."""
    _get_console().print(f"{prefix} {message}", style="error")


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    """Print a warning message."""
    _get_console().print(f"{prefix} {message}", style="warning")


# ---------------------------------------------------------------------------
# Structured output
# ---------------------------------------------------------------------------


def print_table(
    data: List[Dict[str, Any]],
    *,
    headers: Optional[List[str]] = None,
    title: Optional[str] = None,
    caption: Optional[str] = None,
    column_styles: Optional[Dict[str, Dict[str, Any]]] = None,
    row_styler: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None,
    show_row_lines: bool = False,
) -> None:
    """Render structured data as a Rich table.

    Args:
        data: List of row dictionaries.
        headers: Column order. Defaults to keys of the first row.
        title: Optional table title.
        caption: Optional table caption.
        column_styles: Per-column style configuration.
        row_styler: Optional callback returning a row style.
        show_row_lines: Whether to draw horizontal lines between rows.
    """
    if not data:
        return

    if headers is None:
        headers = list(data[0].keys())

    table = Table(
        title=title,
        caption=caption,
        show_header=True,
        header_style="bold",
        show_lines=show_row_lines,
    )

    column_styles = column_styles or {}
    for header in headers:
        config = column_styles.get(header, {})
        table.add_column(
            header,
            style=config.get("style"),
            justify=config.get("justify", "default"),
            no_wrap=config.get("no_wrap", False),
            width=config.get("width"),
            overflow=config.get("overflow", "fold"),
        )

    for row in data:
        values = [str(row.get(h, "")) for h in headers]
        style = row_styler(row) if row_styler else None
        table.add_row(*values, style=style)

    _get_console().print(table)


# ---------------------------------------------------------------------------
# User interaction
# ---------------------------------------------------------------------------


def confirm(message: str, *, default: bool = False) -> bool:
    """Prompt the user for a yes/no confirmation.

    - "y", "yes"   → True
    - "n", "no"    → False
    - empty or unrecognized input → ``default``
    - Ctrl+C / EOF → False

    Args:
        message: Prompt message shown to the user.
        default: Choice used when the user presses Enter.

    Returns:
        True if confirmed, False otherwise.
    """
    console = _get_console()
    suffix = " [Y/n]: " if default else " [y/N]: "
    console.print(f"{message}{suffix}", end="", style="info")

    try:
        response = input().strip().lower()
    except (KeyboardInterrupt, EOFError):
        console.print()
        return False

    if response in ("y", "yes"):
        return True
    if response in ("n", "no"):
        return False

    return default


# ---------------------------------------------------------------------------
# Advanced / internal helpers
# ---------------------------------------------------------------------------


def get_raw_console() -> Console:
    """Return the underlying Rich Console instance."""
    return _get_console()


def _colorize(label: str, color_map: Dict[str, str]) -> str:
    color = color_map.get(label.lower())
    return f"[{color}]{label}[/{color}]" if color else label


def colorize_update_type(update_type: str) -> str:
    """Return a Rich-markup colored update type label (``major``, ``patch``...)."""
    return _colorize(update_type, _UPDATE_TYPE_COLORS)


def colorize_status(status: str) -> str:
    """Return a Rich-markup colored dependency status label."""
    return _colorize(status, _STATUS_COLORS)
