"""Shared utilities for CLI commands.

Provides the shared console and message helpers used across CLI commands.
"""

from typing import NoReturn

from rich.console import Console
from rich.markup import escape

# Shared console instance for consistent output
console = Console()


def print_error(message: str) -> None:
    """Print an error message in red."""
    console.print(f"[red]{escape(message)}[/red]")


def print_info(message: str) -> None:
    """Print an info message in blue."""
    console.print(f"[blue]{escape(message)}[/blue]")


def exit_with_error(message: str, code: int = 1) -> NoReturn:
    """Print an error message and exit with the given code.

    Args:
        message: Error message to display.
        code: Exit code (default 1).
    """
    print_error(message)
    raise SystemExit(code)
