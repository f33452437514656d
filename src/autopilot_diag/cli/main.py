"""Main CLI application for Autopilot registration diagnostics.

Provides a unified command-line interface using Typer with Rich
integration for terminal output.

Usage:
    autopilot-diag check-registration [OPTIONS]    Check registration state
    autopilot-diag log-failure MESSAGE [OPTIONS]   Record a failure
    autopilot-diag --help                          Show help
"""

import typer

from autopilot_diag.cli import commands
from autopilot_diag.cli.utils import console

app = typer.Typer(
    name="autopilot-diag",
    help="Autopilot diagnostics - inspect this machine's Windows Autopilot registration.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)

app.command(name="check-registration")(commands.check_registration)
app.command(name="log-failure")(commands.log_failure)


@app.callback(invoke_without_command=True)  # type: ignore[untyped-decorator]
def main(ctx: typer.Context) -> None:
    """Autopilot registration diagnostics.

    Use 'autopilot-diag COMMAND --help' for more information on a command.
    """
    if ctx.invoked_subcommand is None:
        console.print()
        console.print("[bold blue]Autopilot Diagnostics[/bold blue]")
        console.print()
        console.print("Use [green]autopilot-diag --help[/green] to see available commands.")
        console.print()
        raise typer.Exit(0)


if __name__ == "__main__":
    app()
