"""Diagnostics commands: check-registration, log-failure.

Both commands build a DiagnosticSettings for the run from the config file,
environment and flags, configure logging, and hand off to the core
routines. Neither lets a failure escape as a traceback.
"""

from pathlib import Path

import typer
from pydantic import ValidationError

from autopilot_diag.cli.utils import console, exit_with_error, print_info
from autopilot_diag.config import DiagnosticSettings, load_settings
from autopilot_diag.core.exceptions import AutopilotDiagError
from autopilot_diag.core.failure_logger import log_failure as append_failure
from autopilot_diag.core.logging import bind_context, configure_logging, get_logger
from autopilot_diag.core.sources import WindowsHostSource
from autopilot_diag.core.status_reader import check_registration as run_check

logger = get_logger(__name__)


def _settings(config: Path | None, verbose: bool, **overrides: object) -> DiagnosticSettings:
    try:
        settings = load_settings(config, **overrides)
    except ValidationError as e:
        exit_with_error(f"Invalid configuration: {e}", code=2)

    configure_logging(
        log_format=settings.log_format,
        log_level="DEBUG" if verbose else settings.log_level,
    )
    bind_context(hostname=settings.hostname)
    return settings


def check_registration(
    event_count: int | None = typer.Option(
        None,
        "--event-count",
        "--eventCount",
        "-n",
        min=0,
        help="Maximum number of Autopilot events to retrieve (default 10).",
    ),
    export: bool = typer.Option(
        False, "--export", "-e", help="Append the results to CSV files in the log directory."
    ),
    log_path: Path | None = typer.Option(
        None,
        "--log-path",
        "--logPath",
        help="Directory for CSV log files (default C:\\AutopilotLogfiles).",
    ),
    machine_file: str | None = typer.Option(
        None,
        "--machine-file",
        "--machineFile",
        help="MachineInfo file name (default <hostname>-MachineInfo.csv).",
    ),
    registration_file: str | None = typer.Option(
        None,
        "--registration-file",
        "--registrationFile",
        help="RegistrationInfo file name (default <hostname>-RegistrationInfo.csv).",
    ),
    event_file: str | None = typer.Option(
        None,
        "--event-file",
        "--eventFile",
        help="Event file name (default <hostname>-EventInfo.csv).",
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="YAML config file.", exists=True, dir_okay=False
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    """Check this machine's Autopilot registration.

    Prints Windows version information, the Autopilot registration state
    and the most recent Autopilot diagnostic events.

    Examples:
        autopilot-diag check-registration
        autopilot-diag check-registration -n 25 --export
        autopilot-diag check-registration --export --log-path D:\\Logs
    """
    settings = _settings(
        config,
        verbose,
        event_count=event_count,
        log_path=log_path,
        machine_file=machine_file,
        registration_file=registration_file,
        event_file=event_file,
    )
    logger.debug("Starting registration check", export=export, event_count=settings.event_count)

    report = run_check(WindowsHostSource(), settings, export=export, console=console)

    if report.fatal:
        raise typer.Exit(1)


def log_failure(
    message: str = typer.Argument(..., help="Failure message to record."),
    category: str = typer.Option(
        AutopilotDiagError.category, "--category", help="Failure category."
    ),
    activity: str = typer.Option("", "--activity", help="Activity that was running."),
    target: str = typer.Option("", "--target", help="What the activity operated on."),
    log_path: Path | None = typer.Option(
        None, "--log-path", "--logPath", help="Directory for the failure log."
    ),
    file: str | None = typer.Option(
        None, "--file", help="Failure log file name (default <hostname>-FailureLog.csv)."
    ),
    config: Path | None = typer.Option(
        None, "--config", "-c", help="YAML config file.", exists=True, dir_okay=False
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    """Append a failure to the failure log.

    Records the current time, category, activity, target and message as
    one CSV row. Problems writing the log are reported, never raised.
    """
    settings = _settings(config, verbose, log_path=log_path, failure_file=file)

    error = AutopilotDiagError(message, activity=activity, target=target)
    record = append_failure(error, settings, category=category, console=console)
    if record is not None:
        print_info(f"Failure recorded in {settings.failure_file_path()}")
