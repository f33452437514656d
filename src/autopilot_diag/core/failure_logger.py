"""Durable failure log.

Appends one row per caught failure to ``<hostname>-FailureLog.csv`` in the
log directory. The logger must never crash its caller: every failure
inside it is printed and swallowed, and it never logs through itself.
"""

from rich.console import Console
from rich.markup import escape

from autopilot_diag.config import DiagnosticSettings, load_settings
from autopilot_diag.core.csv_log import append_rows
from autopilot_diag.core.logging import get_logger
from autopilot_diag.core.records import FailureRecord

logger = get_logger(__name__)

_console = Console(stderr=True)


def log_failure(
    error: BaseException,
    settings: DiagnosticSettings | None = None,
    activity: str | None = None,
    target: str | None = None,
    category: str | None = None,
    console: Console | None = None,
) -> FailureRecord | None:
    """Append a caught failure to the failure log.

    Args:
        error: The caught exception.
        settings: Run settings; log directory and file name come from here.
        activity: What was being done. Defaults to ``error.activity``.
        target: What it was done to. Defaults to ``error.target``.
        category: Failure classification. Defaults to ``error.category``
            or the exception class name.
        console: Console for reporting logger-internal problems.

    Returns:
        The record that was written, or None if the append failed.
    """
    out = console or _console
    record = FailureRecord.from_exception(
        error, activity=activity, target=target, category=category
    )

    try:
        settings = settings or load_settings()
        path = settings.failure_file_path()
    except Exception as e:
        out.print(f"[red]Unable to resolve failure log location: {escape(str(e))}[/red]")
        return None

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        # Best effort; the append below reports the real problem.
        logger.debug("Could not create log directory", path=str(path.parent), error=str(e))

    try:
        append_rows(path, FailureRecord.csv_header(), [record.to_row()])
    except Exception as e:
        out.print(f"[red]Unable to write failure log {escape(str(path))}: {escape(str(e))}[/red]")
        return None

    logger.debug("Failure logged", path=str(path), category=record.category)
    return record
