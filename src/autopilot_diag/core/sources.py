"""Read-only access to the host's registration state.

The status reader talks to the machine through the narrow ``HostSource``
protocol so it can run against fakes in tests. ``WindowsHostSource`` is the
production implementation: registry values via ``winreg`` and provisioning
events via the pywin32 ``win32evtlog`` Evt* API.

Key locations:
    HKLM\\SOFTWARE\\Microsoft\\Windows NT\\CurrentVersion          -> MachineInfo
    HKLM\\SOFTWARE\\Microsoft\\Provisioning\\Diagnostics\\AutoPilot -> RegistrationInfo
"""

import sys
import xml.etree.ElementTree as ET
from typing import Any, Protocol

from autopilot_diag.core.exceptions import (
    EventLogReadError,
    RegistryReadError,
)
from autopilot_diag.core.logging import get_logger
from autopilot_diag.core.records import (
    EventEntry,
    EventRecord,
    MachineInfo,
    ReadResult,
    RegistrationInfo,
)

logger = get_logger(__name__)

MACHINE_INFO_KEY = r"SOFTWARE\Microsoft\Windows NT\CurrentVersion"
REGISTRATION_INFO_KEY = r"SOFTWARE\Microsoft\Provisioning\Diagnostics\AutoPilot"

# Event channels: 1803/1809 log to the provisioning provider, 1903 and
# later to the modern deployment provider.
LEGACY_EVENT_LOG = "Microsoft-Windows-Provisioning-Diagnostics-Provider/Admin"
MODERN_EVENT_LOG = "Microsoft-Windows-ModernDeployment-Diagnostics-Provider/Autopilot"
LEGACY_RELEASES = frozenset({"1803", "1809"})
MODERN_RELEASE_THRESHOLD = 1903

# winerror values from pywintypes.error
ERROR_EVT_CHANNEL_NOT_FOUND = 15007
ERROR_NO_MORE_ITEMS = 259

EVENT_XML_NS = {"e": "http://schemas.microsoft.com/win/2004/08/events/event"}

LEVEL_NAMES = {
    0: "Information",
    1: "Critical",
    2: "Error",
    3: "Warning",
    4: "Information",
    5: "Verbose",
}


class HostSource(Protocol):
    """Read-only collaborator for the three host data sources."""

    def read_machine_info(self) -> ReadResult[MachineInfo]: ...

    def read_registration_info(self) -> ReadResult[RegistrationInfo]: ...

    def read_events(self, log_name: str, max_events: int) -> ReadResult[EventRecord]: ...


def select_event_log(release_id: str) -> str | None:
    """Pick the provisioning event channel for a Windows release.

    Args:
        release_id: ``ReleaseId`` from MachineInfo, e.g. "1809" or "2009".

    Returns:
        The channel name, or None when the release matches neither rule.
    """
    release = (release_id or "").strip()
    if release in LEGACY_RELEASES:
        return LEGACY_EVENT_LOG
    if release.isdigit() and int(release) >= MODERN_RELEASE_THRESHOLD:
        return MODERN_EVENT_LOG
    return None


def parse_event_xml(xml: str, message: str = "") -> EventEntry:
    """Convert an event rendered with ``EvtRenderEventXml`` to an EventEntry."""
    root = ET.fromstring(xml)
    system = root.find("e:System", EVENT_XML_NS)
    if system is None:
        return EventEntry(message=message)

    def _find(tag: str) -> ET.Element | None:
        return system.find(f"e:{tag}", EVENT_XML_NS)

    provider = _find("Provider")
    time_created = _find("TimeCreated")
    event_id = _find("EventID")
    level = _find("Level")

    try:
        level_value = int(level.text) if level is not None and level.text else 0
    except ValueError:
        level_value = 0

    return EventEntry(
        time_created=time_created.get("SystemTime", "") if time_created is not None else "",
        event_id=int(event_id.text) if event_id is not None and event_id.text else 0,
        level=LEVEL_NAMES.get(level_value, str(level_value)),
        provider=provider.get("Name", "") if provider is not None else "",
        message=message,
    )


class WindowsHostSource:
    """HostSource backed by the local Windows registry and event log."""

    def __init__(self, batch_size: int = 16) -> None:
        self._batch_size = batch_size
        # Publisher metadata handles by provider name; None if it has none
        self._publishers: dict[str, Any] = {}

    def read_machine_info(self) -> ReadResult[MachineInfo]:
        return self._read_key(MACHINE_INFO_KEY, MachineInfo, "Read machine info")

    def read_registration_info(self) -> ReadResult[RegistrationInfo]:
        return self._read_key(REGISTRATION_INFO_KEY, RegistrationInfo, "Read registration info")

    def _read_key(self, key_path: str, record_type: Any, activity: str) -> ReadResult[Any]:
        if sys.platform != "win32":
            return ReadResult.unavailable(f"registry is not available on {sys.platform}")

        import winreg

        target = f"HKLM\\{key_path}"
        try:
            with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, key_path) as key:
                values: dict[str, Any] = {}
                for name in record_type.value_names():
                    try:
                        values[name] = winreg.QueryValueEx(key, name)[0]
                    except FileNotFoundError:
                        continue
        except FileNotFoundError:
            return ReadResult.unavailable(f"registry key {target} does not exist")
        except OSError as e:
            logger.debug("Registry read failed", key=target, error=str(e))
            error = RegistryReadError(str(e), activity=activity, target=target)
            error.__cause__ = e
            return ReadResult.failed(error)

        logger.debug("Registry key read", key=target, values=len(values))
        return ReadResult.ok(record_type.from_values(values))

    def read_events(self, log_name: str, max_events: int) -> ReadResult[EventRecord]:
        if max_events <= 0:
            return ReadResult.ok(EventRecord(log_name=log_name))
        if sys.platform != "win32":
            return ReadResult.unavailable(f"event log is not available on {sys.platform}")

        try:
            import pywintypes
            import win32evtlog
        except ImportError:
            return ReadResult.unavailable("pywin32 is not installed")

        flags = win32evtlog.EvtQueryChannelPath | win32evtlog.EvtQueryReverseDirection
        try:
            query = win32evtlog.EvtQuery(log_name, flags)
        except pywintypes.error as e:
            if e.winerror == ERROR_EVT_CHANNEL_NOT_FOUND:
                return ReadResult.unavailable(f"event log {log_name} does not exist")
            error = EventLogReadError(e.strerror, activity="Read events", target=log_name)
            error.__cause__ = e
            return ReadResult.failed(error)

        record = EventRecord(log_name=log_name)
        try:
            while len(record.entries) < max_events:
                wanted = min(self._batch_size, max_events - len(record.entries))
                try:
                    handles = win32evtlog.EvtNext(query, wanted)
                except pywintypes.error as e:
                    if e.winerror == ERROR_NO_MORE_ITEMS:
                        break
                    raise
                if not handles:
                    break
                for handle in handles:
                    xml = win32evtlog.EvtRender(handle, win32evtlog.EvtRenderEventXml)
                    entry = parse_event_xml(xml)
                    entry.message = self._format_message(win32evtlog, entry.provider, handle)
                    record.entries.append(entry)
        except Exception as e:
            error = EventLogReadError(str(e), activity="Read events", target=log_name)
            error.__cause__ = e
            return ReadResult.failed(error)

        logger.debug("Events read", log_name=log_name, count=len(record.entries))
        return ReadResult.ok(record)

    def _format_message(self, win32evtlog: Any, provider: str, handle: Any) -> str:
        """Render the localized event message; empty if the publisher has none."""
        if provider not in self._publishers:
            try:
                self._publishers[provider] = win32evtlog.EvtOpenPublisherMetadata(provider)
            except Exception as e:
                logger.debug("No publisher metadata", provider=provider, error=str(e))
                self._publishers[provider] = None

        metadata = self._publishers[provider]
        if metadata is None:
            return ""
        try:
            message = win32evtlog.EvtFormatMessage(
                metadata, handle, win32evtlog.EvtFormatMessageEvent
            )
        except Exception:
            return ""
        return " ".join(message.split())
