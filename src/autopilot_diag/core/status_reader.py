"""Autopilot registration status check.

Reads MachineInfo, RegistrationInfo and the provisioning event log from a
HostSource, prints each as it arrives, and optionally appends them to CSV
files in the log directory.

Only a missing version store is fatal. Every other read, and every export
write, is best effort: problems are reported and the check carries on.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from autopilot_diag.config import DiagnosticSettings
from autopilot_diag.core.csv_log import append_rows
from autopilot_diag.core.failure_logger import log_failure
from autopilot_diag.core.logging import get_logger
from autopilot_diag.core.records import (
    EventEntry,
    EventRecord,
    MachineInfo,
    ReadResult,
    ReadStatus,
    RegistrationInfo,
)
from autopilot_diag.core.sources import HostSource, select_event_log

logger = get_logger(__name__)

FailureHandler = Callable[..., object]


@dataclass
class RegistrationReport:
    """What one check found and wrote."""

    machine_info: MachineInfo | None = None
    registration_info: RegistrationInfo | None = None
    events: EventRecord | None = None
    event_log: str | None = None
    fatal: bool = False
    exported: list[Path] = field(default_factory=list)
    export_failures: list[Path] = field(default_factory=list)
    failures_logged: int = 0


def render_record(console: Console, title: str, items: list[tuple[str, str]]) -> None:
    """Print a key/value record as a panel."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Value Name", style="dim")
    table.add_column("Data", style="green", overflow="fold")
    for name, value in items:
        table.add_row(escape(name), escape(value))

    console.print()
    console.print(Panel(table, title=title, border_style="blue", expand=False))


def render_events(console: Console, record: EventRecord) -> None:
    """Print events most-recent-first as a table."""
    console.print()
    if not record.entries:
        console.print(f"[dim]No events found in {escape(record.log_name)}[/dim]")
        return

    table = Table(title=escape(record.log_name), title_justify="left")
    table.add_column("TimeCreated", style="dim", no_wrap=True)
    table.add_column("Id", justify="right")
    table.add_column("Level")
    table.add_column("Message", overflow="fold")

    level_styles = {"Critical": "bold red", "Error": "red", "Warning": "yellow"}
    for entry in record.entries:
        style = level_styles.get(entry.level, "")
        level = escape(entry.level)
        if style:
            level = f"[{style}]{level}[/{style}]"
        table.add_row(escape(entry.time_created), str(entry.event_id), level, escape(entry.message))

    console.print(table)


def check_registration(
    source: HostSource,
    settings: DiagnosticSettings,
    event_count: int | None = None,
    export: bool = False,
    console: Console | None = None,
    failure_handler: FailureHandler = log_failure,
) -> RegistrationReport:
    """Check this machine's Autopilot registration.

    Args:
        source: Where machine, registration and event data are read from.
        settings: Log directory, file names and defaults for this run.
        event_count: Maximum events to retrieve (settings.event_count if None).
        export: Append every populated record set to its CSV file.
        console: Console for the report.
        failure_handler: Called with unexpected read errors; defaults to the
            failure log.

    Returns:
        RegistrationReport describing what was read and written.
    """
    out = console or Console()
    count = settings.event_count if event_count is None else event_count
    report = RegistrationReport()

    def _failed(result: ReadResult, activity: str, target: str) -> None:
        out.print(f"[red]{activity} failed: {escape(result.reason)}[/red]")
        if result.error is not None:
            failure_handler(result.error, settings=settings, activity=activity, target=target)
            report.failures_logged += 1

    # Machine info: the only fatal read
    machine = _safe_read(source.read_machine_info)
    if not machine.is_ok or machine.data is None:
        out.print(
            "[bold red]Unable to read Windows version information "
            f"({escape(machine.reason or 'no data')}). Cannot continue.[/bold red]"
        )
        # Reported here only; the fatal case never touches the failure log
        logger.error("Machine info unavailable", status=machine.status.value, reason=machine.reason)
        report.fatal = True
        return report

    report.machine_info = machine.data
    render_record(out, "Machine Info", machine.data.items())

    # Registration info
    registration = _safe_read(source.read_registration_info)
    if registration.is_ok and registration.data is not None:
        report.registration_info = registration.data.normalized()
        render_record(out, "Autopilot Registration Info", report.registration_info.items())
    elif registration.status is ReadStatus.UNAVAILABLE:
        out.print()
        out.print(
            "[yellow]Autopilot registration info unavailable: "
            f"{escape(registration.reason)}[/yellow]"
        )
    else:
        _failed(registration, "Read registration info", "AutoPilot registration key")

    # Events
    report.event_log = select_event_log(report.machine_info.release_id)
    if report.event_log is None:
        out.print()
        out.print(
            "[yellow]No Autopilot event log for release "
            f"'{escape(report.machine_info.release_id)}'; skipping events.[/yellow]"
        )
        report.events = EventRecord(log_name="")
    else:
        events = _safe_read(source.read_events, report.event_log, count)
        if events.is_ok and events.data is not None:
            report.events = events.data
            render_events(out, events.data)
        elif events.status is ReadStatus.UNAVAILABLE:
            out.print()
            out.print(
                f"[yellow]Autopilot events unavailable: {escape(events.reason)}[/yellow]"
            )
        else:
            _failed(events, "Read events", report.event_log)

    if export:
        _export(report, settings, out)

    out.print()
    out.print(
        f"[green]Autopilot registration check complete. "
        f"Log directory: {escape(str(settings.log_path))}[/green]"
    )
    return report


def _export(report: RegistrationReport, settings: DiagnosticSettings, out: Console) -> None:
    """Append each populated record set to its file, independently."""
    targets: list[tuple[Path, list[str], list[list[str]]]] = []
    if report.machine_info is not None:
        targets.append(
            (settings.machine_file_path(), MachineInfo.csv_header(), [report.machine_info.to_row()])
        )
    if report.registration_info is not None:
        targets.append(
            (
                settings.registration_file_path(),
                RegistrationInfo.csv_header(),
                [report.registration_info.to_row()],
            )
        )
    if report.events is not None and report.events.entries:
        targets.append(
            (
                settings.event_file_path(),
                EventEntry.csv_header(),
                [entry.to_row() for entry in report.events.entries],
            )
        )

    for path, header, rows in targets:
        try:
            append_rows(path, header, rows)
        except Exception as e:
            out.print(f"[red]Unable to write {escape(str(path))}: {escape(str(e))}[/red]")
            logger.warning("Export failed", path=str(path), error=str(e))
            report.export_failures.append(path)
            continue
        logger.debug("Exported", path=str(path), rows=len(rows))
        report.exported.append(path)


def _safe_read(read: Callable[..., ReadResult], *args: object) -> ReadResult:
    """Call a source read, turning an escaped exception into an error result."""
    try:
        return read(*args)
    except Exception as e:
        logger.debug("Source read raised", read=getattr(read, "__name__", repr(read)), error=str(e))
        return ReadResult.failed(e)
