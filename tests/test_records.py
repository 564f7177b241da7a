"""
Tests for input records, the blocking policy and schedule validation.
"""

from datetime import date

import pendulum
import pytest

from officeslots.domain.exceptions import ScheduleValidationError
from officeslots.domain.records import (
    Appointment,
    AppointmentStatus,
    BlockingPolicy,
    OfficeMembership,
    WorkPeriod,
    WorkSchedule,
    day_of_week,
    manages_office,
)
from officeslots.domain.validation import (
    ensure_valid_schedule,
    validate_work_periods,
    validate_work_schedule,
)


def _schedule(*periods, **overrides) -> WorkSchedule:
    values = dict(
        office_id="main",
        provider_id="dr-smith",
        day_of_week=1,
        work_periods=tuple(WorkPeriod(start=s, end=e) for s, e in periods),
        slot_duration_minutes=50,
        slot_buffer_minutes=10,
    )
    values.update(overrides)
    return WorkSchedule(**values)


class TestAppointmentStatus:
    """Tests for the appointment lifecycle."""

    def test_forward_transitions(self):
        assert AppointmentStatus.PENDING.can_transition_to(AppointmentStatus.CONFIRMED)
        assert AppointmentStatus.CONFIRMED.can_transition_to(AppointmentStatus.COMPLETED)
        assert AppointmentStatus.PENDING.can_transition_to(AppointmentStatus.CANCELLED)
        assert AppointmentStatus.CONFIRMED.can_transition_to(AppointmentStatus.CANCELLED)

    def test_terminal_statuses(self):
        assert AppointmentStatus.CANCELLED.is_terminal
        assert AppointmentStatus.COMPLETED.is_terminal
        assert not AppointmentStatus.CANCELLED.can_transition_to(AppointmentStatus.PENDING)
        assert not AppointmentStatus.COMPLETED.can_transition_to(AppointmentStatus.CANCELLED)

    def test_pending_cannot_skip_to_completed(self):
        assert not AppointmentStatus.PENDING.can_transition_to(AppointmentStatus.COMPLETED)


class TestBlockingPolicy:
    """Tests for the configurable blocking predicate."""

    def _appointment(self, status: AppointmentStatus) -> Appointment:
        return Appointment(
            start=pendulum.parse("2025-01-06 10:00", tz="Europe/Berlin"),
            duration_minutes=60,
            status=status,
        )

    def test_default_blocks_pending_and_confirmed(self):
        policy = BlockingPolicy()

        assert policy(self._appointment(AppointmentStatus.PENDING))
        assert policy(self._appointment(AppointmentStatus.CONFIRMED))
        assert not policy(self._appointment(AppointmentStatus.CANCELLED))
        assert not policy(self._appointment(AppointmentStatus.COMPLETED))

    def test_custom_statuses(self):
        policy = BlockingPolicy.from_names(["confirmed"])

        assert not policy(self._appointment(AppointmentStatus.PENDING))
        assert policy(self._appointment(AppointmentStatus.CONFIRMED))

    def test_unknown_status_name_raises(self):
        with pytest.raises(ValueError):
            BlockingPolicy.from_names(["booked"])


class TestRecords:
    """Tests for schedule and appointment records."""

    def test_appointment_end(self):
        appointment = Appointment(
            start=pendulum.parse("2025-01-06 10:00", tz="Europe/Berlin"),
            duration_minutes=50,
        )

        assert appointment.end == pendulum.parse("2025-01-06 10:50", tz="Europe/Berlin")
        assert appointment.time_range().duration_minutes() == 50
        assert appointment.status is AppointmentStatus.PENDING

    def test_day_of_week_is_sunday_first(self):
        assert day_of_week(date(2025, 1, 5)) == 0  # Sunday
        assert day_of_week(date(2025, 1, 6)) == 1  # Monday
        assert day_of_week(date(2025, 1, 11)) == 6  # Saturday

    def test_periods_for_date_are_anchored_in_office_timezone(self):
        schedule = _schedule(("13:00", "17:00"), ("09:00", "12:00"))

        periods = schedule.periods_for_date(date(2025, 1, 6), "America/New_York")

        assert [p.start.hour for p in periods] == [9, 13]
        assert periods[0].start.timezone_name == "America/New_York"
        assert periods[0].start.in_timezone("UTC").hour == 14

    def test_malformed_period_is_skipped(self):
        schedule = _schedule(("09:00", "12:00"), ("25:00", "26:00"))

        periods = schedule.periods_for_date(date(2025, 1, 6), "UTC")

        assert len(periods) == 1

    def test_day_name(self):
        assert _schedule(day_of_week=0).day_name == "Sunday"
        assert _schedule(day_of_week=3).day_name == "Wednesday"


class TestMembership:
    """Tests for the office management capability."""

    def test_active_membership_grants_management(self):
        memberships = [
            OfficeMembership(user_id="dr-smith", office_id="main"),
            OfficeMembership(user_id="dr-jones", office_id="main", is_active=False),
        ]

        assert manages_office("dr-smith", "main", memberships)
        assert not manages_office("dr-jones", "main", memberships)
        assert not manages_office("dr-smith", "annex", memberships)


class TestScheduleValidation:
    """Tests for save-time schedule validation."""

    def test_valid_schedule(self):
        schedule = _schedule(("09:00", "12:00"), ("13:00", "17:00"))

        assert validate_work_schedule(schedule) == []
        assert ensure_valid_schedule(schedule) is schedule

    def test_rejects_bad_format(self):
        errors = validate_work_periods([WorkPeriod(start="9am", end="12:00")])

        assert errors == ["period 1 has invalid time format (use HH:MM)"]

    def test_rejects_end_before_start(self):
        errors = validate_work_periods([WorkPeriod(start="12:00", end="09:00")])

        assert errors == ["period 1 end time must be after start time"]

    def test_rejects_overlapping_periods(self):
        errors = validate_work_periods(
            [WorkPeriod(start="09:00", end="12:00"), WorkPeriod(start="11:00", end="14:00")]
        )

        assert errors == ["periods 09:00-12:00 and 11:00-14:00 overlap"]

    def test_adjacent_periods_are_valid(self):
        errors = validate_work_periods(
            [WorkPeriod(start="09:00", end="12:00"), WorkPeriod(start="12:00", end="14:00")]
        )

        assert errors == []

    def test_rejects_non_positive_duration(self):
        with pytest.raises(ScheduleValidationError) as exc_info:
            ensure_valid_schedule(_schedule(("09:00", "12:00"), slot_duration_minutes=0))

        assert "slot_duration_minutes must be greater than zero" in exc_info.value.errors

    def test_rejects_slot_longer_than_any_period(self):
        errors = validate_work_schedule(_schedule(("09:00", "09:30"), slot_duration_minutes=50))

        assert errors == ["slot_duration_minutes is too long for the work periods (30 minutes available)"]

    def test_empty_periods_are_allowed(self):
        assert validate_work_schedule(_schedule()) == []
