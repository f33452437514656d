"""Pytest fixtures for Autopilot diagnostics tests."""

import io
import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
from rich.console import Console

from autopilot_diag.config import DiagnosticSettings
from autopilot_diag.core.records import (
    EventEntry,
    EventRecord,
    MachineInfo,
    ReadResult,
    RegistrationInfo,
)


class FakeHostSource:
    """In-memory HostSource that records which reads were made."""

    def __init__(
        self,
        machine: ReadResult[MachineInfo],
        registration: ReadResult[RegistrationInfo] | None = None,
        events: list[EventEntry] | None = None,
        events_result: ReadResult[EventRecord] | None = None,
    ) -> None:
        self.machine = machine
        self.registration = registration or ReadResult.unavailable("key missing")
        self.events = events or []
        self.events_result = events_result
        self.calls: list[str] = []
        self.event_requests: list[tuple[str, int]] = []

    def read_machine_info(self) -> ReadResult[MachineInfo]:
        self.calls.append("machine")
        return self.machine

    def read_registration_info(self) -> ReadResult[RegistrationInfo]:
        self.calls.append("registration")
        return self.registration

    def read_events(self, log_name: str, max_events: int) -> ReadResult[EventRecord]:
        self.calls.append("events")
        self.event_requests.append((log_name, max_events))
        if self.events_result is not None:
            return self.events_result
        newest_first = sorted(self.events, key=lambda e: e.time_created, reverse=True)
        return ReadResult.ok(EventRecord(log_name=log_name, entries=newest_first[:max_events]))


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo logging configuration done by CLI commands."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def console() -> Console:
    """A wide, colorless console writing to memory."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def fake_source() -> type[FakeHostSource]:
    """The FakeHostSource class, for tests to build their own host."""
    return FakeHostSource


@pytest.fixture
def settings(tmp_path: Path) -> DiagnosticSettings:
    """Settings writing into a temporary log directory."""
    return DiagnosticSettings(hostname="TESTPC", log_path=tmp_path / "logs")


@pytest.fixture
def machine_info() -> MachineInfo:
    return MachineInfo.from_values(
        {
            "BuildBranch": "vb_release",
            "BuildLab": "19041.vb_release.191206-1406",
            "BuildLabEx": "19041.1.amd64fre.vb_release.191206-1406",
            "CurrentBuild": "19045",
            "CurrentBuildNumber": "19045",
            "CurrentVersion": "6.3",
            "DisplayVersion": "22H2",
            "EditionID": "Enterprise",
            "InstallationType": "Client",
            "ProductName": "Windows 10 Enterprise",
            "ReleaseId": "2009",
        }
    )


@pytest.fixture
def registration_info() -> RegistrationInfo:
    return RegistrationInfo.from_values(
        {
            "AutopilotServiceCorrelationId": "6b2e3a52-41a9-4c36-9d2f-6c7a3f0f1e55",
            "CloudAssignedTenantDomain": "contoso.onmicrosoft.com",
            "CloudAssignedTenantId": "0f3e2b1a-7c6d-4e5f-8a9b-1c2d3e4f5a6b",
            "CloudAssignedDeviceName": "CONTOSO-%SERIAL%",
            "CloudAssignedLanguage": "os-default",
            "CloudAssignedUserUpn": "",
            "CloudAssignedOobeConfig": 1310,
            "IsAutoPilotDisabled": 0,
            "IsForcedEnrollmentEnabled": 1,
            "AgilityProductVersion": "10.0.19041.3636",
        }
    )


@pytest.fixture
def sample_events() -> list[EventEntry]:
    """Thirty events, one per minute."""
    return [
        EventEntry(
            time_created=f"2024-03-14T13:{minute:02d}:00.0000000Z",
            event_id=100 + minute,
            level="Information",
            provider="Microsoft-Windows-ModernDeployment-Diagnostics-Provider",
            message=f"Autopilot step {minute}",
        )
        for minute in range(30)
    ]
