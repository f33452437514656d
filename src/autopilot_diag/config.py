"""Configuration management with YAML file support.

Priority (highest to lowest):
1. Explicit overrides (command-line flags)
2. Environment variables (AUTOPILOT_DIAG_*)
3. config.yaml file
4. Default values

Settings are built once per invocation and passed explicitly to the
status reader and the failure logger.
"""

import logging
import os
import socket
import sys
from pathlib import Path
from typing import Any, Literal

import yaml  # type: ignore[import-untyped]
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "AUTOPILOT_DIAG_"

# Default config file locations (checked in order)
CONFIG_FILE_LOCATIONS = [
    Path("autopilot_diag.yaml"),
    Path("autopilot_diag.yml"),
    Path("./config/autopilot_diag.yaml"),
]


def default_hostname() -> str:
    """Return this machine's name, used for default file names."""
    return socket.gethostname()


def default_log_path() -> Path:
    """Return the platform-appropriate default log directory."""
    if sys.platform == "win32":
        return Path(r"C:\AutopilotLogfiles")
    return Path("AutopilotLogfiles")


def find_config_file() -> Path | None:
    """Find the first existing config file.

    Returns:
        Path to config file if found, None otherwise.
    """
    for path in CONFIG_FILE_LOCATIONS:
        if path.exists():
            return path
    return None


def load_yaml_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Optional explicit path to config file.

    Returns:
        Dictionary of configuration values.
    """
    if config_path is None:
        config_path = find_config_file()

    if config_path is None or not config_path.exists():
        return {}

    try:
        with open(config_path, encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            logger.warning(f"Ignoring config {config_path}: top level is not a mapping")
            return {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except Exception as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        return {}


class DiagnosticSettings(BaseSettings):
    """Settings for one diagnostics run."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
    )

    hostname: str = Field(
        default_factory=default_hostname,
        description="Host name used to derive default log file names",
    )
    log_path: Path = Field(
        default_factory=default_log_path,
        description="Directory the CSV log files are written to",
    )
    event_count: int = Field(
        default=10,
        ge=0,
        description="Maximum number of provisioning events to retrieve",
    )

    # File names; None means "<hostname>-<Kind>Info.csv"
    machine_file: str | None = Field(default=None, description="MachineInfo CSV file name")
    registration_file: str | None = Field(
        default=None, description="RegistrationInfo CSV file name"
    )
    event_file: str | None = Field(default=None, description="Event CSV file name")
    failure_file: str | None = Field(default=None, description="Failure log CSV file name")

    # Logging
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Diagnostic log output format",
    )
    log_level: str = Field(
        default="WARNING",
        description="Minimum diagnostic log level",
    )

    @field_validator("log_path", mode="before")
    @classmethod
    def parse_path(cls, v: str | Path) -> Path:
        """Convert string paths to Path objects."""
        return Path(v) if isinstance(v, str) else v

    @field_validator("machine_file", "registration_file", "event_file", "failure_file")
    @classmethod
    def blank_is_default(cls, v: str | None) -> str | None:
        """Treat blank file names as unset."""
        if v is not None and not v.strip():
            return None
        return v

    def _file_path(self, name: str | None, kind: str) -> Path:
        return self.log_path / (name or f"{self.hostname}-{kind}.csv")

    def machine_file_path(self) -> Path:
        return self._file_path(self.machine_file, "MachineInfo")

    def registration_file_path(self) -> Path:
        return self._file_path(self.registration_file, "RegistrationInfo")

    def event_file_path(self) -> Path:
        return self._file_path(self.event_file, "EventInfo")

    def failure_file_path(self) -> Path:
        return self._file_path(self.failure_file, "FailureLog")


def load_settings(config_path: Path | None = None, **overrides: Any) -> DiagnosticSettings:
    """Create settings from YAML config, environment and explicit overrides.

    Args:
        config_path: Optional explicit YAML config file.
        **overrides: Values that win over every other source. ``None`` values
            are ignored so unset command-line options fall through.

    Returns:
        DiagnosticSettings: Settings for this run.
    """
    yaml_config = load_yaml_config(config_path)

    # pydantic-settings would let init values beat env vars, so apply env
    # on top of YAML by hand before the explicit overrides.
    env_overrides = {}
    for field_name in DiagnosticSettings.model_fields:
        env_name = f"{ENV_PREFIX}{field_name.upper()}"
        if env_name in os.environ:
            env_overrides[field_name] = os.environ[env_name]

    explicit = {k: v for k, v in overrides.items() if v is not None}

    merged_config = {**yaml_config, **env_overrides, **explicit}
    merged_config = {k: v for k, v in merged_config.items() if v != ""}

    return DiagnosticSettings(**merged_config)
