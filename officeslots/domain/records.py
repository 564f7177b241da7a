"""
Input records supplied by the persistence layer: offices, memberships,
weekly work schedules and appointments.

These are read-only snapshots. The engine never mutates them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

import pendulum
from pendulum import DateTime

from .models import SlotConfiguration, TimePeriod
from .time_parsing import parse_time_string

logger = logging.getLogger(__name__)


DEFAULT_APPOINTMENT_DURATION_MINUTES = 50

# Sunday-first numbering, matching the stored ``day_of_week`` column
DAYS_OF_WEEK: Dict[str, int] = {
    "sunday": 0,
    "monday": 1,
    "tuesday": 2,
    "wednesday": 3,
    "thursday": 4,
    "friday": 5,
    "saturday": 6,
}


def day_of_week(day: date) -> int:
    """Return the 0 (Sunday) .. 6 (Saturday) day number of a date."""
    return day.isoweekday() % 7


def day_name(day_number: int) -> str:
    for name, number in DAYS_OF_WEEK.items():
        if number == day_number:
            return name.capitalize()
    raise ValueError(f"day_of_week must be between 0 and 6, got {day_number}")


class AppointmentStatus(str, Enum):
    """Lifecycle status of an appointment."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]

    def can_transition_to(self, target: "AppointmentStatus") -> bool:
        """Check if moving from this status to ``target`` is allowed."""
        return AppointmentStatus(target) in _TRANSITIONS[self]


_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
}

DEFAULT_BLOCKING_STATUSES: FrozenSet[AppointmentStatus] = frozenset(
    {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}
)


@dataclass(frozen=True)
class Office:
    """An office location with its own timezone."""
    id: str
    name: str = ""
    timezone: str = "UTC"


@dataclass(frozen=True)
class OfficeMembership:
    """Links a user (provider) to an office."""
    user_id: str
    office_id: str
    role: str = "member"
    is_active: bool = True


def manages_office(
    user_id: str,
    office_id: str,
    memberships: Iterable[OfficeMembership],
) -> bool:
    """A user manages an office iff an active membership links them."""
    return any(
        membership.is_active
        and membership.user_id == user_id
        and membership.office_id == office_id
        for membership in memberships
    )


@dataclass(frozen=True)
class WorkPeriod:
    """A wall-clock work period such as ``09:00``-``12:00``."""
    start: str
    end: str

    @property
    def start_minutes(self) -> Optional[int]:
        return _minutes_of_day(self.start)

    @property
    def end_minutes(self) -> Optional[int]:
        return _minutes_of_day(self.end)

    def on_date(self, day: date, timezone: str) -> Optional[TimePeriod]:
        """
        Anchor this period to a calendar date in the given timezone.

        Returns None when either bound is not a valid time of day.
        """
        start = parse_time_string(self.start)
        end = parse_time_string(self.end)
        if start is None or end is None:
            return None

        return TimePeriod(
            start=pendulum.datetime(
                day.year, day.month, day.day, start.hour, start.minute, tz=timezone
            ),
            end=pendulum.datetime(
                day.year, day.month, day.day, end.hour, end.minute, tz=timezone
            ),
        )


def _minutes_of_day(value: str) -> Optional[int]:
    parsed = parse_time_string(value)
    if parsed is None:
        return None
    return parsed.hour * 60 + parsed.minute


@dataclass(frozen=True)
class WorkSchedule:
    """
    Recurring work periods of a provider at an office for one day of week.

    At most one active schedule may exist per
    ``(provider_id, office_id, day_of_week)``.
    """
    office_id: str
    provider_id: str
    day_of_week: int
    work_periods: Tuple[WorkPeriod, ...] = ()
    slot_duration_minutes: int = DEFAULT_APPOINTMENT_DURATION_MINUTES
    slot_buffer_minutes: int = 10
    is_active: bool = True

    @property
    def key(self) -> Tuple[str, str, int]:
        return (self.provider_id, self.office_id, self.day_of_week)

    @property
    def day_name(self) -> str:
        return day_name(self.day_of_week)

    def periods_for_date(self, day: date, timezone: str) -> List[TimePeriod]:
        """Work periods anchored to ``day``, ordered by start."""
        periods: List[TimePeriod] = []

        for work_period in self.work_periods:
            period = work_period.on_date(day, timezone)
            if period is None:
                logger.warning(
                    "Skipping malformed work period %s-%s for provider %s at office %s",
                    work_period.start,
                    work_period.end,
                    self.provider_id,
                    self.office_id,
                )
                continue
            periods.append(period)

        return sorted(periods, key=lambda p: p.start)

    def slot_configuration_for_date(self, day: date, timezone: str) -> SlotConfiguration:
        return SlotConfiguration.from_minutes(
            self.slot_duration_minutes,
            self.slot_buffer_minutes,
            tuple(self.periods_for_date(day, timezone)),
        )


@dataclass(frozen=True)
class Appointment:
    """A booked appointment occupying ``[start, start + duration)``."""
    start: DateTime
    duration_minutes: int = DEFAULT_APPOINTMENT_DURATION_MINUTES
    status: AppointmentStatus = AppointmentStatus.PENDING
    office_id: str = ""
    provider_id: str = ""
    id: Optional[str] = None

    @property
    def end(self) -> DateTime:
        return self.start + timedelta(minutes=self.duration_minutes)

    def time_range(self) -> TimePeriod:
        return TimePeriod(start=self.start, end=self.end)


@dataclass(frozen=True)
class BlockingPolicy:
    """
    Decides which appointments block availability.

    Defaults to pending and confirmed appointments.
    """
    statuses: FrozenSet[AppointmentStatus] = field(
        default_factory=lambda: DEFAULT_BLOCKING_STATUSES
    )

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "BlockingPolicy":
        """Build a policy from status names; unknown names raise ValueError."""
        return cls(statuses=frozenset(AppointmentStatus(name) for name in names))

    def __call__(self, appointment: Appointment) -> bool:
        return appointment.status in self.statuses

    def filter(self, appointments: Iterable[Appointment]) -> List[Appointment]:
        return [appointment for appointment in appointments if self(appointment)]
