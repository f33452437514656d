"""Unit tests for the failure log and CSV appends."""

import csv
from pathlib import Path

from rich.console import Console

from autopilot_diag.config import DiagnosticSettings
from autopilot_diag.core.csv_log import append_rows
from autopilot_diag.core.exceptions import EventLogReadError
from autopilot_diag.core.failure_logger import log_failure
from autopilot_diag.core.records import FailureRecord


def read_csv(path: Path) -> list[list[str]]:
    with open(path, encoding="utf-8", newline="") as f:
        return list(csv.reader(f))


class TestAppendRows:
    """Tests for append_rows."""

    def test_creates_directory_and_header(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "out.csv"

        written = append_rows(path, ["A", "B"], [["1", "2"]])

        assert written == 1
        assert read_csv(path) == [["A", "B"], ["1", "2"]]

    def test_appends_without_rewriting(self, tmp_path: Path) -> None:
        """Existing rows are kept and the header is written only once."""
        path = tmp_path / "out.csv"
        append_rows(path, ["A", "B"], [["1", "2"]])

        append_rows(path, ["A", "B"], [["3", "4"], ["5", "6"]])

        assert read_csv(path) == [["A", "B"], ["1", "2"], ["3", "4"], ["5", "6"]]

    def test_quotes_embedded_commas(self, tmp_path: Path) -> None:
        path = tmp_path / "out.csv"

        append_rows(path, ["Message"], [["step 1, step 2"]])

        assert read_csv(path)[1] == ["step 1, step 2"]


class TestLogFailure:
    """Tests for log_failure."""

    def test_writes_header_and_row(self, settings: DiagnosticSettings, console: Console) -> None:
        error = EventLogReadError(
            "The specified channel could not be found.",
            activity="Read events",
            target="Microsoft-Windows-Provisioning-Diagnostics-Provider/Admin",
        )

        record = log_failure(error, settings, console=console)

        path = settings.failure_file_path()
        assert path == settings.log_path / "TESTPC-FailureLog.csv"
        rows = read_csv(path)
        assert rows[0] == FailureRecord.csv_header()
        assert record is not None
        assert rows[1] == record.to_row()
        assert rows[1][1:4] == [
            "ReadError",
            "Read events",
            "Microsoft-Windows-Provisioning-Diagnostics-Provider/Admin",
        ]

    def test_rows_accumulate_in_call_order(
        self, settings: DiagnosticSettings, console: Console
    ) -> None:
        for i in range(3):
            log_failure(RuntimeError(f"failure {i}"), settings, console=console)

        rows = read_csv(settings.failure_file_path())

        assert len(rows) == 4
        assert [row[4] for row in rows[1:]] == ["failure 0", "failure 1", "failure 2"]

    def test_explicit_classification(self, settings: DiagnosticSettings, console: Console) -> None:
        log_failure(
            KeyError("DisplayVersion"),
            settings,
            activity="Read machine info",
            target="CurrentVersion",
            category="ObjectNotFound",
            console=console,
        )

        row = read_csv(settings.failure_file_path())[1]

        assert row[1:4] == ["ObjectNotFound", "Read machine info", "CurrentVersion"]

    def test_custom_file_name(self, tmp_path: Path, console: Console) -> None:
        settings = DiagnosticSettings(
            hostname="TESTPC", log_path=tmp_path, failure_file="errors.csv"
        )

        log_failure(ValueError("bad"), settings, console=console)

        assert (tmp_path / "errors.csv").exists()

    def test_unwritable_directory_does_not_raise(self, tmp_path: Path, console: Console) -> None:
        """A log directory that cannot be created is reported, not raised."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        settings = DiagnosticSettings(hostname="TESTPC", log_path=blocker / "logs")

        record = log_failure(ValueError("bad"), settings, console=console)

        assert record is None
        assert "Unable to write failure log" in console.file.getvalue()  # type: ignore[attr-defined]
        assert blocker.read_text() == "not a directory"
