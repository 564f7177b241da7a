"""
Tests for the in-memory scheduling repository and its YAML loader.
"""

from pathlib import Path

import pendulum
import pytest

from officeslots.adapters.memory_repository import InMemorySchedulingRepository
from officeslots.config import ScheduleDefaults
from officeslots.domain.exceptions import (
    RepositoryError,
    ScheduleValidationError,
    UnknownRecordError,
)
from officeslots.domain.records import (
    Appointment,
    AppointmentStatus,
    Office,
    OfficeMembership,
    WorkPeriod,
    WorkSchedule,
)

TZ = "Europe/Berlin"

EXAMPLE_DATA = Path(__file__).parent.parent / "data.example.yaml"


@pytest.fixture
def repository() -> InMemorySchedulingRepository:
    return InMemorySchedulingRepository(
        offices=[Office(id="main", name="Main", timezone=TZ)],
        memberships=[OfficeMembership(user_id="dr-smith", office_id="main")],
    )


def _schedule(day_of_week=1, periods=(("09:00", "12:00"),), **kwargs) -> WorkSchedule:
    values = dict(
        office_id="main",
        provider_id="dr-smith",
        day_of_week=day_of_week,
        work_periods=tuple(WorkPeriod(start=s, end=e) for s, e in periods),
    )
    values.update(kwargs)
    return WorkSchedule(**values)


class TestWorkSchedules:
    """Tests for saving and reading work schedules."""

    def test_save_and_read(self, repository):
        repository.save_work_schedule(_schedule(3))
        repository.save_work_schedule(_schedule(1))

        schedules = repository.work_schedules_for("main", "dr-smith")

        assert [s.day_of_week for s in schedules] == [1, 3]

    def test_active_schedule_replaces_previous_one(self, repository):
        repository.save_work_schedule(_schedule(1, (("09:00", "12:00"),)))
        repository.save_work_schedule(_schedule(1, (("13:00", "17:00"),)))

        schedules = repository.work_schedules_for("main", "dr-smith")

        assert len(schedules) == 1
        assert schedules[0].work_periods == (WorkPeriod("13:00", "17:00"),)

    def test_inactive_schedules_are_not_returned(self, repository):
        repository.save_work_schedule(_schedule(1, is_active=False))

        assert repository.work_schedules_for("main", "dr-smith") == []

    def test_invalid_schedule_is_rejected(self, repository):
        with pytest.raises(ScheduleValidationError) as exc_info:
            repository.save_work_schedule(_schedule(1, (("09:00", "12:00"), ("11:00", "13:00"))))

        assert exc_info.value.errors == ["periods 09:00-12:00 and 11:00-13:00 overlap"]
        assert repository.work_schedules_for("main", "dr-smith") == []

    def test_provider_must_work_at_office(self, repository):
        with pytest.raises(ScheduleValidationError) as exc_info:
            repository.save_work_schedule(_schedule(1, provider_id="dr-jones"))

        assert exc_info.value.errors == ["provider must work at this office"]

    def test_unknown_office(self, repository):
        with pytest.raises(UnknownRecordError):
            repository.save_work_schedule(_schedule(1, office_id="annex"))

    def test_schedules_for_week_fills_missing_days(self, repository):
        repository.save_work_schedule(_schedule(1))
        defaults = ScheduleDefaults(slot_duration_minutes=30, slot_buffer_minutes=0)

        week = repository.schedules_for_week("main", "dr-smith", defaults)

        assert [s.day_of_week for s in week] == [0, 1, 2, 3, 4, 5, 6]
        assert [s.is_active for s in week] == [False, True, False, False, False, False, False]
        assert week[0].work_periods == (WorkPeriod("09:00", "17:00"),)
        assert week[0].slot_duration_minutes == 30


class TestAppointments:
    """Tests for appointment lookup."""

    def test_appointments_for_returns_overlapping_sorted(self, repository):
        at = lambda value: pendulum.parse(value, tz=TZ)
        for start in ("2025-01-06 15:00", "2025-01-05 23:30", "2025-01-06 09:00", "2025-01-07 09:00"):
            repository.add_appointment(
                Appointment(start=at(start), duration_minutes=60, office_id="main", provider_id="dr-smith")
            )
        repository.add_appointment(
            Appointment(start=at("2025-01-06 10:00"), office_id="main", provider_id="dr-jones")
        )

        found = repository.appointments_for(
            "main", "dr-smith", at("2025-01-06 00:00"), at("2025-01-07 00:00")
        )

        assert [a.start.format("YYYY-MM-DD HH:mm") for a in found] == [
            "2025-01-05 23:30",
            "2025-01-06 09:00",
            "2025-01-06 15:00",
        ]


class TestLoadFromYaml:
    """Tests for loading scheduling data from YAML."""

    def test_load_example_data(self):
        repository = InMemorySchedulingRepository.load_from_yaml(EXAMPLE_DATA)

        office = repository.office("main")
        assert office.timezone == TZ
        assert repository.manages_office("dr-smith", "main")
        assert [s.day_of_week for s in repository.work_schedules_for("main", "dr-smith")] == [1, 3]

        appointments = repository.appointments_for(
            "main",
            "dr-smith",
            pendulum.datetime(2025, 1, 6, tz=TZ),
            pendulum.datetime(2025, 1, 13, tz=TZ),
        )
        assert [a.status for a in appointments] == [
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.CANCELLED,
        ]
        assert appointments[0].start == pendulum.datetime(2025, 1, 6, 10, 0, tz=TZ)

    def test_office_without_timezone_uses_default(self, tmp_path):
        path = tmp_path / "data.yaml"
        path.write_text(
            "offices:\n"
            "  - {id: branch}\n"
            "  - {id: main, timezone: Europe/Berlin}\n"
            "appointments:\n"
            "  - {office_id: branch, provider_id: dr-smith, start: '2025-01-06 10:00'}\n",
            encoding="utf-8",
        )

        repository = InMemorySchedulingRepository.load_from_yaml(path, default_timezone="America/New_York")

        assert repository.office("branch").timezone == "America/New_York"
        assert repository.office("main").timezone == TZ
        appointment = repository.appointments_for(
            "branch",
            "dr-smith",
            pendulum.datetime(2025, 1, 6, tz="UTC"),
            pendulum.datetime(2025, 1, 7, tz="UTC"),
        )[0]
        assert appointment.start == pendulum.datetime(2025, 1, 6, 15, 0, tz="UTC")

    def test_office_timezone_defaults_to_utc(self, tmp_path):
        path = tmp_path / "data.yaml"
        path.write_text("offices: [{id: branch}]\n", encoding="utf-8")

        assert InMemorySchedulingRepository.load_from_yaml(path).office("branch").timezone == "UTC"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            InMemorySchedulingRepository.load_from_yaml(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "data.yaml"
        path.write_text("offices: [unclosed", encoding="utf-8")

        with pytest.raises(RepositoryError):
            InMemorySchedulingRepository.load_from_yaml(path)

    def test_root_must_be_mapping(self, tmp_path):
        path = tmp_path / "data.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(RepositoryError, match="mapping"):
            InMemorySchedulingRepository.load_from_yaml(path)

    def test_unknown_status(self, tmp_path):
        path = tmp_path / "data.yaml"
        path.write_text(
            "offices: [{id: main}]\n"
            "appointments:\n"
            "  - {office_id: main, provider_id: dr-smith, start: '2025-01-06 10:00', status: booked}\n",
            encoding="utf-8",
        )

        with pytest.raises(RepositoryError):
            InMemorySchedulingRepository.load_from_yaml(path)

    def test_bad_appointment_start(self, tmp_path):
        path = tmp_path / "data.yaml"
        path.write_text(
            "offices: [{id: main}]\n"
            "appointments:\n"
            "  - {office_id: main, provider_id: dr-smith, start: 'next tuesday'}\n",
            encoding="utf-8",
        )

        with pytest.raises(RepositoryError, match="next tuesday"):
            InMemorySchedulingRepository.load_from_yaml(path)

    def test_invalid_stored_schedule(self, tmp_path):
        path = tmp_path / "data.yaml"
        path.write_text(
            "offices: [{id: main}]\n"
            "memberships: [{user_id: dr-smith, office_id: main}]\n"
            "work_schedules:\n"
            "  - office_id: main\n"
            "    provider_id: dr-smith\n"
            "    day_of_week: 9\n",
            encoding="utf-8",
        )

        with pytest.raises(ScheduleValidationError):
            InMemorySchedulingRepository.load_from_yaml(path)
