"""
Availability calculation: subtracting booked time from work periods.

Architecture:
1. WorkSchedule defines when a provider works (with gaps for breaks)
2. AvailabilityService subtracts blocking appointments from those periods
3. SlotGenerator turns the day into discrete bookable slots

Pure domain logic: no I/O, no clock, no shared state.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional, Sequence

from pendulum import DateTime

from .models import TimePeriod
from .overlap import contains
from .records import (
    Appointment,
    BlockingPolicy,
    Office,
    WorkSchedule,
    day_of_week,
)

UTC = "UTC"


class PeriodSubtractor:
    """
    Subtracts one busy range from a list of periods.

    Each period falls into exactly one of five cases:
    1. no overlap - kept whole
    2. busy covers the period - removed
    3. busy overlaps the start - the tail is kept
    4. busy overlaps the end - the head is kept
    5. busy lies strictly inside - split in two
    """

    def __init__(self, busy: TimePeriod):
        self.busy_start = busy.start
        self.busy_end = busy.end

    @classmethod
    def subtract(cls, periods: Iterable[TimePeriod], busy: TimePeriod) -> List[TimePeriod]:
        return cls(busy).subtract_from(periods)

    def subtract_from(self, periods: Iterable[TimePeriod]) -> List[TimePeriod]:
        result: List[TimePeriod] = []
        for period in periods:
            result.extend(self._subtract_from_period(period))
        return result

    def _subtract_from_period(self, period: TimePeriod) -> List[TimePeriod]:
        if self._no_overlap(period):
            return [period]
        if self._covers(period):
            return []
        if self._overlaps_start(period):
            return [TimePeriod(start=self.busy_end, end=period.end)]
        if self._overlaps_end(period):
            return [TimePeriod(start=period.start, end=self.busy_start)]
        if self._splits(period):
            return [
                TimePeriod(start=period.start, end=self.busy_start),
                TimePeriod(start=self.busy_end, end=period.end),
            ]
        return []

    def _no_overlap(self, period: TimePeriod) -> bool:
        return self.busy_end <= period.start or self.busy_start >= period.end

    def _covers(self, period: TimePeriod) -> bool:
        return self.busy_start <= period.start and self.busy_end >= period.end

    def _overlaps_start(self, period: TimePeriod) -> bool:
        return self.busy_start <= period.start < self.busy_end < period.end

    def _overlaps_end(self, period: TimePeriod) -> bool:
        return period.start < self.busy_start < period.end <= self.busy_end

    def _splits(self, period: TimePeriod) -> bool:
        return period.start < self.busy_start and self.busy_end < period.end


def subtract_periods(
    open_periods: Iterable[TimePeriod],
    busy_periods: Iterable[TimePeriod],
) -> List[TimePeriod]:
    """
    Remove every busy period from the open periods.

    Busy periods are applied one after another to the current fragment set.
    The result does not depend on the order of ``busy_periods``: it is the
    set difference against their union, returned sorted by start with empty
    fragments dropped.

    Example:
    Open: [09:00 - 17:00]
    Busy: [10:00-11:00, 14:00-15:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
    """
    fragments = [period for period in open_periods if not period.is_empty]

    for busy in busy_periods:
        if busy.is_empty:
            continue
        fragments = PeriodSubtractor.subtract(fragments, busy)
        if not fragments:
            break

    return sorted(
        (fragment for fragment in fragments if not fragment.is_empty),
        key=lambda p: (p.start, p.end),
    )


class AvailabilityService:
    """
    Computes the free periods of one provider at one office.

    Example usage:
        service = AvailabilityService(
            office=office,
            work_schedules=schedules,
            appointments=appointments,
        )
        service.available_periods(date(2025, 1, 6))
        # => [TimePeriod, ...]
    """

    def __init__(
        self,
        *,
        office: Office,
        work_schedules: Sequence[WorkSchedule],
        appointments: Sequence[Appointment],
        blocking_policy: Optional[BlockingPolicy] = None,
    ):
        self.office = office
        self.blocking_policy = blocking_policy or BlockingPolicy()
        self.work_schedules = [
            schedule for schedule in work_schedules
            if schedule.is_active and schedule.office_id == office.id
        ]
        self.appointments = [
            appointment for appointment in appointments
            if appointment.office_id in ("", office.id) and self.blocking_policy(appointment)
        ]

    @staticmethod
    def subtract(
        open_periods: Iterable[TimePeriod],
        busy_periods: Iterable[TimePeriod],
    ) -> List[TimePeriod]:
        return subtract_periods(open_periods, busy_periods)

    def schedule_for(self, day: date) -> Optional[WorkSchedule]:
        """Active schedule for the day of week of ``day``, if any."""
        wday = day_of_week(day)
        for schedule in self.work_schedules:
            if schedule.day_of_week == wday:
                return schedule
        return None

    def work_periods_for(self, day: date) -> List[TimePeriod]:
        schedule = self.schedule_for(day)
        if schedule is None:
            return []
        return schedule.periods_for_date(day, self.office.timezone)

    def busy_periods(self) -> List[TimePeriod]:
        return [appointment.time_range() for appointment in self.appointments]

    def available_periods(self, day: date) -> List[TimePeriod]:
        """
        Free periods of ``day`` in the office timezone.

        Subtraction runs on UTC instants so DST transitions compare exactly.
        """
        work_periods = self.work_periods_for(day)
        if not work_periods:
            return []

        free = subtract_periods(
            (period.in_timezone(UTC) for period in work_periods),
            (period.in_timezone(UTC) for period in self.busy_periods()),
        )

        return [period.in_timezone(self.office.timezone) for period in free]

    def is_available(self, start: DateTime, end: DateTime) -> bool:
        """
        Check if the entire range ``[start, end)`` is free.

        This is an advisory, point-in-time answer. A booking write path must
        call it on freshly loaded data and still rely on a storage-level
        uniqueness guard against concurrent bookings.
        """
        if start >= end:
            return False

        start_utc = start.in_timezone(UTC)
        end_utc = end.in_timezone(UTC)
        local_day = start.in_timezone(self.office.timezone).date()

        return any(
            contains(period.start, period.end, start_utc, end_utc)
            for period in self.available_periods(local_day)
        )

    def total_available_minutes(self, day: date) -> int:
        return sum(period.duration_minutes() for period in self.available_periods(day))
