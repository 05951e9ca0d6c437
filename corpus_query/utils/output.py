"""Rich console output helpers for corpus-query."""

from __future__ import annotations

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

# Module-level verbosity flag (set by cli.py after argument parsing)
_verbose_enabled: bool = False

# Custom theme for corpus-query
THEME = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "url": "blue underline",
        "pattern": "bold magenta",
        "field": "bold",
    }
)

# Global console instances
console = Console(theme=THEME, stderr=False)
error_console = Console(theme=THEME, stderr=True)


def set_verbosity(*, verbose: bool = False, debug: bool = False) -> None:
    """Configure module-level verbosity flags and library logging.

    Called from the CLI entry point after argument parsing. Library log
    records go to stderr: warnings always, info with --verbose, everything
    with --debug.
    """
    global _verbose_enabled
    _verbose_enabled = verbose or debug  # debug implies verbose

    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logger = logging.getLogger("corpus_query")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(console=error_console, show_path=debug))


def set_color(enabled: bool) -> None:
    """Enable or disable color on both console instances."""
    console.no_color = not enabled
    error_console.no_color = not enabled


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/info]")


def warning(message: str) -> None:
    """Print a warning message to stderr."""
    error_console.print(f"[warning]Warning:[/warning] {message}")


def error(message: str, hint: str | None = None) -> None:
    """Print an error message to stderr.

    Args:
        message: The error message.
        hint: Optional hint for resolution.
    """
    error_console.print(f"[error]Error:[/error] {message}")
    if hint:
        error_console.print(f"  [info]Hint:[/info] {hint}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/success]")


def verbose(message: str) -> None:
    """Print a message only when verbose mode is enabled."""
    if _verbose_enabled:
        console.print(f"[info]{message}[/info]")


def create_table(title: str | None = None, **kwargs: Any) -> Table:
    """Create a styled table.

    Args:
        title: Optional table title.
        **kwargs: Additional Table arguments.

    Returns:
        Rich Table instance.
    """
    return Table(title=title, **kwargs)


def print_fields(rows: dict[str, Any], title: str | None = None) -> None:
    """Print a two-column field/value table, skipping unset values."""
    table = create_table(title, show_header=False, box=None)
    table.add_column(style="field")
    table.add_column()
    for name, value in rows.items():
        if value is None or value == "":
            continue
        table.add_row(name, escape(str(value)))
    console.print(table)


def print_url(url: str, prefix: str = "") -> None:
    """Print a URL with styling.

    Args:
        url: The URL.
        prefix: Optional prefix.
    """
    if prefix:
        console.print(f"{prefix} [url]{escape(url)}[/url]", soft_wrap=True)
    else:
        console.print(f"[url]{escape(url)}[/url]", soft_wrap=True)
