"""
WorkflowSettings — the single configuration object for an invocation.

Settings are read from a JSON file named by the RUNWATCH_CONFIG environment
variable (or passed explicitly). Every field has a default, so a missing
variable means "run with defaults". The CLI surface takes no flags, so this
is the only way to change marker names, budgets or the analysis command.

All fields are validated strictly. No silent coercion of unknown keys.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "RUNWATCH_CONFIG"


class WorkflowSettings(BaseModel):
    """
    Immutable settings for the run-folder workflow.

    Marker and file names are relative to the run folder. Budgets are in
    minutes; the completion waiter polls once per poll_interval_seconds and
    spends one unit of budget per poll.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Files the engine owns inside a run folder
    lock_filename: str = Field(default=".runwatch.lock")
    log_filename: str = Field(default="workflow-log.txt")
    rotation_suffix: str = Field(default=".old")
    complete_marker: str = Field(default="WorkflowComplete.txt")

    # Files written by the instrument
    acquisition_marker: str = Field(default="RTAComplete.txt")
    run_summary_marker: str = Field(default="RunCompletionStatus.xml")
    require_run_summary: bool = Field(default=False)
    run_summary_field: str = Field(default="CompletionStatus")
    run_summary_success: str = Field(default="CompletedAsPlanned")

    # Polling budgets
    acquisition_wait_minutes: int = Field(default=4320, ge=0)
    run_summary_wait_minutes: int = Field(default=60, ge=0)
    poll_interval_seconds: float = Field(default=60.0, gt=0)

    # Analysis step
    required_inputs: List[str] = Field(default_factory=lambda: ["SampleSheet.csv"])
    analysis_command: List[str] = Field(default_factory=lambda: ["bcl2fastq"])
    output_subdir: str = Field(default="Data/Intensities/BaseCalls")
    project_prefix: str = Field(default="Project_")

    # Delivery
    home_globs: List[str] = Field(default_factory=lambda: ["/b?_?/home*/{username}"])
    home_overrides: Dict[str, str] = Field(default_factory=dict)

    # Notification
    recipients_file: str = Field(default="email-recipients.txt")
    smtp_host: str = Field(default="localhost")
    smtp_port: int = Field(default=25, gt=0)
    mail_from: str = Field(default="noreply@localhost")
    support_contact: str = Field(default="your local research computing support team")

    # Recursion caps
    max_rename_depth: int = Field(default=64, ge=1)
    max_copy_depth: int = Field(default=128, ge=1)

    log_level: str = Field(default="WARNING")

    @field_validator("analysis_command")
    @classmethod
    def validate_command(cls, v: List[str]) -> List[str]:
        """Analysis command must name an executable."""
        if not v or not v[0].strip():
            raise ValueError("analysis_command must not be empty")
        return v

    @field_validator("home_globs")
    @classmethod
    def validate_home_globs(cls, v: List[str]) -> List[str]:
        """Each pattern must contain the {username} placeholder."""
        for pattern in v:
            if "{username}" not in pattern:
                raise ValueError(f"home_globs entry lacks {{username}}: {pattern}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("rotation_suffix")
    @classmethod
    def validate_rotation_suffix(cls, v: str) -> str:
        if not v or "/" in v:
            raise ValueError("rotation_suffix must be a non-empty file name suffix")
        return v

    def output_dir(self, run_folder: Path) -> Path:
        """Directory inside a run folder where per-owner projects are written."""
        return run_folder / self.output_subdir


def load_settings(path: Optional[Path] = None) -> WorkflowSettings:
    """
    Load settings from a JSON file.

    Args:
        path: Explicit config path. If None, RUNWATCH_CONFIG is consulted;
            if that is unset too, defaults are returned.

    Returns:
        Validated WorkflowSettings. A relative recipients_file is resolved
        against the config file's directory.

    Raises:
        ConfigurationError: File unreadable, not JSON, or invalid values
    """
    if path is None:
        env_value = os.environ.get(ENV_CONFIG_PATH)
        if not env_value:
            logger.debug("No configuration file given, using defaults")
            return WorkflowSettings()
        path = Path(env_value)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in configuration file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must hold a JSON object")

    try:
        settings = WorkflowSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e

    recipients = Path(settings.recipients_file)
    if not recipients.is_absolute():
        resolved = (Path(path).resolve().parent / recipients).as_posix()
        settings = settings.model_copy(update={"recipients_file": resolved})

    logger.debug(f"Loaded configuration from {path}")
    return settings
