"""Windows Autopilot registration diagnostics."""

__version__ = "1.0.0"
