"""Custom exceptions for the Autopilot diagnostics tool."""


class AutopilotDiagError(Exception):
    """Base exception for diagnostics errors.

    Carries the classification fields the failure log records: a category
    (what kind of failure), the activity that was running, and the target
    it was operating on.
    """

    category = "NotSpecified"

    def __init__(self, message: str, activity: str = "", target: str = "") -> None:
        super().__init__(message)
        self.activity = activity
        self.target = target


class RegistryReadError(AutopilotDiagError):
    """Raised when a registry key exists but cannot be read."""

    category = "ReadError"


class EventLogReadError(AutopilotDiagError):
    """Raised when querying an event log channel fails."""

    category = "ReadError"
