"""CLI package for Autopilot registration diagnostics.

This package provides a Typer-based command-line interface for checking
a machine's Autopilot registration and recording failures.

Example usage:
    autopilot-diag check-registration --event-count 25 --export
    autopilot-diag log-failure "Registry read failed" --category ReadError
"""

from autopilot_diag.cli.main import app

__all__ = ["app"]
