"""Record types produced by a registration check.

Each record has a fixed column order. Registry-backed records map every
field to the registry value it is read from, and that value name is also
the CSV column header so exported files line up with what an administrator
sees in regedit.
"""

import datetime
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Generic, TypeVar

NONE_ASSIGNED = "None Assigned"

TIMESTAMP_FORMAT = "%m/%d/%Y %H:%M:%S"

T = TypeVar("T")


def _value(name: str) -> Any:
    """Declare a string field backed by the registry value ``name``."""
    return field(default="", metadata={"value_name": name})


class _RegistryRecord:
    """Mixin for dataclasses whose fields map to registry values."""

    @classmethod
    def value_names(cls) -> list[str]:
        return [f.metadata["value_name"] for f in fields(cls)]  # type: ignore[arg-type]

    @classmethod
    def csv_header(cls) -> list[str]:
        return cls.value_names()

    @classmethod
    def from_values(cls, values: dict[str, Any]):  # type: ignore[no-untyped-def]
        """Build a record from a mapping of registry value name to data.

        Missing values become empty strings; non-string data is stringified.
        """
        kwargs = {}
        for f in fields(cls):  # type: ignore[arg-type]
            raw = values.get(f.metadata["value_name"])
            kwargs[f.name] = "" if raw is None else str(raw)
        return cls(**kwargs)

    def to_row(self) -> list[str]:
        return [getattr(self, f.name) for f in fields(self)]  # type: ignore[arg-type]

    def items(self) -> list[tuple[str, str]]:
        return list(zip(self.value_names(), self.to_row()))


@dataclass
class MachineInfo(_RegistryRecord):
    """OS/build identification from the CurrentVersion key."""

    build_branch: str = _value("BuildBranch")
    build_lab: str = _value("BuildLab")
    build_lab_ex: str = _value("BuildLabEx")
    current_build: str = _value("CurrentBuild")
    current_build_number: str = _value("CurrentBuildNumber")
    current_version: str = _value("CurrentVersion")
    display_version: str = _value("DisplayVersion")
    edition_id: str = _value("EditionID")
    installation_type: str = _value("InstallationType")
    product_name: str = _value("ProductName")
    release_id: str = _value("ReleaseId")


@dataclass
class RegistrationInfo(_RegistryRecord):
    """Autopilot registration state from the provisioning diagnostics key."""

    correlation_id: str = _value("AutopilotServiceCorrelationId")
    tenant_domain: str = _value("CloudAssignedTenantDomain")
    tenant_id: str = _value("CloudAssignedTenantId")
    device_name: str = _value("CloudAssignedDeviceName")
    language: str = _value("CloudAssignedLanguage")
    assigned_upn: str = _value("CloudAssignedUserUpn")
    oobe_config: str = _value("CloudAssignedOobeConfig")
    autopilot_disabled: str = _value("IsAutoPilotDisabled")
    forced_enrollment: str = _value("IsForcedEnrollmentEnabled")
    last_processed_device_name: str = _value("DeviceNameLastProcessed")
    agility_product_version: str = _value("AgilityProductVersion")

    def normalized(self) -> "RegistrationInfo":
        """Return a copy with empty optional fields set to the sentinel.

        Idempotent: the sentinel itself is non-empty and is kept.
        """
        return RegistrationInfo(
            **{
                **{f.name: getattr(self, f.name) for f in fields(self)},
                "assigned_upn": self.assigned_upn or NONE_ASSIGNED,
                "last_processed_device_name": self.last_processed_device_name or NONE_ASSIGNED,
            }
        )


@dataclass
class EventEntry:
    """A single provisioning diagnostics event."""

    time_created: str = ""
    event_id: int = 0
    level: str = ""
    provider: str = ""
    message: str = ""

    @staticmethod
    def csv_header() -> list[str]:
        return ["TimeCreated", "Id", "LevelDisplayName", "ProviderName", "Message"]

    def to_row(self) -> list[str]:
        return [self.time_created, str(self.event_id), self.level, self.provider, self.message]


@dataclass
class EventRecord:
    """Most-recent-first events from one log channel."""

    log_name: str
    entries: list[EventEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class FailureRecord:
    """One row of the failure log."""

    timestamp: str
    category: str
    activity: str
    target: str
    message: str

    @staticmethod
    def csv_header() -> list[str]:
        return ["Timestamp", "Category", "Activity", "Target", "Message"]

    def to_row(self) -> list[str]:
        return [self.timestamp, self.category, self.activity, self.target, self.message]

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        activity: str | None = None,
        target: str | None = None,
        category: str | None = None,
        now: datetime.datetime | None = None,
    ) -> "FailureRecord":
        """Capture a caught exception's classification fields.

        Explicit arguments win; otherwise the exception's own ``category``,
        ``activity`` and ``target`` attributes are used, falling back to the
        exception class name for the category.
        """
        now = now or datetime.datetime.now()
        return cls(
            timestamp=now.strftime(TIMESTAMP_FORMAT),
            category=category or getattr(error, "category", None) or type(error).__name__,
            activity=activity or getattr(error, "activity", "") or "",
            target=target or getattr(error, "target", "") or "",
            message=str(error),
        )


class ReadStatus(Enum):
    """Outcome of a single host source read."""

    OK = "ok"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass
class ReadResult(Generic[T]):
    """Result of reading one host source.

    ``data`` is set when the read succeeded, ``reason`` describes why a
    source is unavailable, and ``error`` holds the exception for
    unexpected failures.
    """

    status: ReadStatus
    data: T | None = None
    reason: str = ""
    error: Exception | None = None

    @classmethod
    def ok(cls, data: T) -> "ReadResult[T]":
        return cls(status=ReadStatus.OK, data=data)

    @classmethod
    def unavailable(cls, reason: str) -> "ReadResult[T]":
        return cls(status=ReadStatus.UNAVAILABLE, reason=reason)

    @classmethod
    def failed(cls, error: Exception) -> "ReadResult[T]":
        return cls(status=ReadStatus.ERROR, reason=str(error), error=error)

    @property
    def is_ok(self) -> bool:
        return self.status is ReadStatus.OK
