"""
Discretizes work periods into a fixed-size slot grid.

Every candidate slot is kept and tagged ``available`` or ``busy`` so the
caller can render both free and taken times.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence

import pendulum

from .models import AvailableSlot, SlotConfiguration, SlotStatus, TimePeriod
from .overlap import OverlapChecker
from .records import Appointment, BlockingPolicy, WorkSchedule, day_of_week

logger = logging.getLogger(__name__)

UTC = "UTC"


def as_date(value: date) -> pendulum.Date:
    """Normalize ``datetime.date``/``datetime`` values to a pendulum Date."""
    return pendulum.date(value.year, value.month, value.day)


def iter_days(start_date: date, end_date: date) -> Iterable[pendulum.Date]:
    """Yield each calendar date from ``start_date`` to ``end_date`` inclusive."""
    current = as_date(start_date)
    last = as_date(end_date)

    while current <= last:
        yield current
        current = current.add(days=1)


def slots_for_configuration(
    day: date,
    config: SlotConfiguration,
    checker: OverlapChecker,
    *,
    timezone: str,
    office_id: Optional[str] = None,
) -> List[AvailableSlot]:
    """
    Generate the slots of one day.

    For each period a cursor starts at the period start and advances by
    ``duration + buffer``; a slot ``[cursor, cursor + duration)`` is emitted
    while it still ends within the period. Walking happens on UTC instants,
    slots are reported in ``timezone``.

    Raises:
        ValueError: If the duration or the step is not positive
    """
    if config.duration <= timedelta(0) or config.total_slot_duration <= timedelta(0):
        raise ValueError(
            f"Slot duration and step must be positive, got duration={config.duration} "
            f"buffer={config.buffer}"
        )

    slots: List[AvailableSlot] = []
    local_day = as_date(day)

    for period in sorted(config.periods, key=lambda p: p.start.timestamp()):
        if period.is_empty:
            continue

        period_end = period.end.in_timezone(UTC)
        cursor = period.start.in_timezone(UTC)

        # Generate slots only within this work period
        while cursor + config.duration <= period_end:
            slot_end = cursor + config.duration
            status = SlotStatus.BUSY if checker.any_overlap(cursor, slot_end) else SlotStatus.AVAILABLE

            slots.append(
                AvailableSlot(
                    start=cursor.in_timezone(timezone),
                    end=slot_end.in_timezone(timezone),
                    date=local_day,
                    status=status,
                    office_id=office_id,
                )
            )
            cursor = cursor + config.total_slot_duration

    # Same-zone datetimes compare by wall time, so order on the instant
    return sorted(slots, key=lambda slot: slot.start.timestamp())


def generate_slots(
    periods: Sequence[TimePeriod],
    busy_periods: Sequence[TimePeriod],
    *,
    slot_duration_minutes: int,
    slot_buffer_minutes: int = 0,
    timezone: str = UTC,
    office_id: Optional[str] = None,
) -> List[AvailableSlot]:
    """
    Generate slots for a set of periods, grouped by their local start date.
    """
    by_day = {}
    for period in periods:
        by_day.setdefault(period.start.in_timezone(timezone).date(), []).append(period)

    checker = OverlapChecker(busy_periods)
    slots: List[AvailableSlot] = []

    for day in sorted(by_day):
        config = SlotConfiguration.from_minutes(
            slot_duration_minutes, slot_buffer_minutes, tuple(by_day[day])
        )
        slots.extend(
            slots_for_configuration(day, config, checker, timezone=timezone, office_id=office_id)
        )

    return slots


class SlotGenerator:
    """
    Generates the slot grid of one office over a date range.

    Algorithm:
    1. For each calendar day, pick the schedule for its day of week
    2. Anchor the schedule's work periods to that day (office timezone)
    3. Walk each period in steps of duration + buffer
    4. Tag each slot busy if it overlaps a blocking appointment

    Identical inputs always produce the identical slot sequence, ascending
    by start time and grouped by day.
    """

    def __init__(
        self,
        work_schedules: Sequence[WorkSchedule],
        appointments: Sequence[Appointment],
        *,
        office_id: Optional[str] = None,
        timezone: str = UTC,
        blocking_policy: Optional[BlockingPolicy] = None,
    ):
        self.work_schedules = list(work_schedules)
        self.office_id = office_id or (self.work_schedules[0].office_id if self.work_schedules else None)
        self.timezone = timezone
        self.blocking_policy = blocking_policy or BlockingPolicy()

        self.appointments = [
            appointment for appointment in appointments
            if appointment.office_id in ("", self.office_id) and self.blocking_policy(appointment)
        ]

    def __call__(self, start_date: date, end_date: date) -> List[AvailableSlot]:
        return self.generate(start_date, end_date)

    def generate(self, start_date: date, end_date: date) -> List[AvailableSlot]:
        """
        Generate slots for every day from ``start_date`` to ``end_date``.

        Args:
            start_date: First day to generate slots for
            end_date: Last day to generate slots for (inclusive)

        Returns:
            List of AvailableSlot objects, available and busy
        """
        office_schedules = [
            schedule for schedule in self.work_schedules
            if schedule.is_active and schedule.office_id == self.office_id
        ]
        if not office_schedules:
            return []

        checker = OverlapChecker(
            appointment.time_range() for appointment in self.appointments
        )

        slots: List[AvailableSlot] = []
        for day in iter_days(start_date, end_date):
            schedule = self._schedule_for(office_schedules, day)
            if schedule is None:
                continue

            config = schedule.slot_configuration_for_date(day, self.timezone)
            slots.extend(
                slots_for_configuration(
                    day, config, checker, timezone=self.timezone, office_id=self.office_id
                )
            )

        logger.debug(
            "Generated %d slots for office %s from %s to %s",
            len(slots),
            self.office_id,
            start_date,
            end_date,
        )
        return slots

    @staticmethod
    def _schedule_for(schedules: Sequence[WorkSchedule], day: date) -> Optional[WorkSchedule]:
        wday = day_of_week(day)
        for schedule in schedules:
            if schedule.day_of_week == wday:
                return schedule
        return None
