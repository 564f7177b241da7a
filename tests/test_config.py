"""
Tests for configuration loading.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from officeslots.config import AppConfig, ScheduleDefaults
from officeslots.domain.exceptions import ConfigError
from officeslots.domain.records import AppointmentStatus


def test_defaults():
    config = AppConfig()

    assert config.timezone == "Europe/Berlin"
    assert config.data_file is None
    assert config.blocking_policy().statuses == {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}
    assert config.defaults.slot_duration_minutes == 50
    assert config.defaults.slot_buffer_minutes == 10


def test_load_from_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "timezone: America/New_York\n"
        "data_file: data.yaml\n"
        "blocking_statuses: [confirmed, confirmed]\n"
        "defaults:\n"
        "  slot_duration_minutes: 30\n"
        "  slot_buffer_minutes: 0\n",
        encoding="utf-8",
    )

    config = AppConfig.load_from_yaml(path)

    assert config.timezone == "America/New_York"
    assert config.blocking_statuses == ["confirmed"]
    assert config.defaults.slot_duration_minutes == 30
    assert config.resolve_data_file(tmp_path) == tmp_path / "data.yaml"


def test_absolute_data_file_is_kept(tmp_path):
    config = AppConfig(data_file=tmp_path / "data.yaml")

    assert config.resolve_data_file(Path("/elsewhere")) == tmp_path / "data.yaml"


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        AppConfig.load_from_yaml(tmp_path / "config.yaml")


@pytest.mark.parametrize(
    "content",
    [
        "timezone: Mars/Olympus_Mons\n",
        "blocking_statuses: [booked]\n",
        "defaults: {work_start: '17:00', work_end: '09:00'}\n",
        "defaults: {slot_duration_minutes: 0}\n",
        "- not a mapping\n",
        "timezone: [unclosed\n",
    ],
)
def test_invalid_config_raises_config_error(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        AppConfig.load_from_yaml(path)


def test_schedule_defaults_validate_time_format():
    with pytest.raises(ValidationError):
        ScheduleDefaults(work_start="9am")


def test_example_config_is_valid():
    path = Path(__file__).parent.parent / "config.example.yaml"

    config = AppConfig.load_from_yaml(path)

    assert config.resolve_data_file(path.parent) == path.parent / "data.example.yaml"
