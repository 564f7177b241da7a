"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .domain.exceptions import ConfigError
from .domain.records import AppointmentStatus, BlockingPolicy, WorkPeriod
from .domain.time_parsing import parse_time_to_minutes, valid_time_format


class ScheduleDefaults(BaseModel):
    """Default values for new or blank work schedules."""
    slot_duration_minutes: int = 50
    slot_buffer_minutes: int = 10
    work_start: str = "09:00"
    work_end: str = "17:00"

    @field_validator("slot_duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure slot duration is positive."""
        if value <= 0:
            raise ValueError("slot_duration_minutes must be greater than zero")
        return value

    @field_validator("slot_buffer_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        if value < 0:
            raise ValueError("slot_buffer_minutes must not be negative")
        return value

    @field_validator("work_start", "work_end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Validate a 24-hour HH:MM time."""
        if not valid_time_format(value):
            raise ValueError(f"Time must use the 24-hour HH:MM format, got {value!r}")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "ScheduleDefaults":
        """Ensure the default work day opens before it closes."""
        if parse_time_to_minutes(self.work_end) <= parse_time_to_minutes(self.work_start):
            raise ValueError("work_end must be later than work_start")
        return self

    def work_period(self) -> WorkPeriod:
        return WorkPeriod(start=self.work_start, end=self.work_end)


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    data_file: Optional[Path] = None
    blocking_statuses: List[str] = Field(
        default_factory=lambda: [AppointmentStatus.PENDING.value, AppointmentStatus.CONFIRMED.value]
    )
    defaults: ScheduleDefaults = Field(default_factory=ScheduleDefaults)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("blocking_statuses")
    @classmethod
    def validate_blocking_statuses(cls, value: List[str]) -> List[str]:
        """Ensure statuses are known and deduplicated."""
        known = {status.value for status in AppointmentStatus}
        invalid = [status for status in value if status not in known]
        if invalid:
            raise ValueError(
                f"blocking_statuses must be among {sorted(known)}, got {invalid}"
            )
        # Preserve order while removing duplicates
        return list(dict.fromkeys(value))

    def blocking_policy(self) -> BlockingPolicy:
        return BlockingPolicy.from_names(self.blocking_statuses)

    def resolve_data_file(self, base_dir: Path) -> Optional[Path]:
        """Resolve ``data_file`` relative to the directory of the config file."""
        if self.data_file is None:
            return None
        if self.data_file.is_absolute():
            return self.data_file
        return base_dir / self.data_file

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ConfigError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping at the root level.")

        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
