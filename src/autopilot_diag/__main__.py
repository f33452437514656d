"""Entry point for running the diagnostics as a module.

This module serves as a thin wrapper around the Typer CLI application.

Usage:
    python -m autopilot_diag check-registration --export
    python -m autopilot_diag log-failure "message" --target HKLM\\...
    python -m autopilot_diag --help
"""


def main() -> None:
    """Main entry point - delegates to Typer CLI app."""
    from autopilot_diag.cli.main import app

    app()


if __name__ == "__main__":
    main()
