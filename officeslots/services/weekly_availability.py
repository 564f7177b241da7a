"""
Application service computing a provider's weekly availability at an office.

The service loads schedules and appointments through a repository protocol
and delegates the slot math to the domain-level ``SlotGenerator``. The clock
is injected so "the current week" is testable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from functools import cached_property
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple, Union

import pendulum
from pendulum import DateTime

from ..domain.exceptions import CalculationError
from ..domain.models import AvailableSlot
from ..domain.records import Appointment, BlockingPolicy, Office, WorkSchedule
from ..domain.slot_generator import SlotGenerator, as_date, iter_days

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7

WeekStart = Union[date, str, None]


class SchedulingRepositoryProtocol(Protocol):
    """Protocol describing the data access needed by the calculator."""

    def work_schedules_for(self, office_id: str, provider_id: str) -> Sequence[WorkSchedule]:
        """Return the active work schedules of a provider at an office."""

    def appointments_for(
        self,
        office_id: str,
        provider_id: str,
        start: DateTime,
        end: DateTime,
    ) -> Sequence[Appointment]:
        """Return appointments overlapping ``[start, end)``."""


@dataclass(frozen=True)
class WeeklyAvailability:
    """Slots of one week grouped by date, with aggregate counts."""
    office: Office
    provider_id: str
    week_start: pendulum.Date
    week_end: pendulum.Date
    slots_by_day: Dict[pendulum.Date, List[AvailableSlot]]
    total_slots: int
    available_slots: int
    appointments: Tuple[Appointment, ...]
    work_schedules: Tuple[WorkSchedule, ...]

    @property
    def busy_slots(self) -> int:
        return self.total_slots - self.available_slots

    def week_range(self) -> List[pendulum.Date]:
        return list(iter_days(self.week_start, self.week_end))

    def all_slots(self) -> List[AvailableSlot]:
        return [slot for day in sorted(self.slots_by_day) for slot in self.slots_by_day[day]]


class _WeekCalculation:
    """
    State of a single ``calculate()`` call.

    Every intermediate result is memoized here and dropped with the object,
    so nothing is shared between calls or requests.
    """

    def __init__(
        self,
        repository: SchedulingRepositoryProtocol,
        office: Office,
        provider_id: str,
        week_start: pendulum.Date,
        blocking_policy: BlockingPolicy,
    ):
        self.repository = repository
        self.office = office
        self.provider_id = provider_id
        self.week_start = week_start
        self.week_end = week_start.add(days=DAYS_IN_WEEK - 1)
        self.blocking_policy = blocking_policy

    @cached_property
    def work_schedules(self) -> Tuple[WorkSchedule, ...]:
        schedules = self.repository.work_schedules_for(self.office.id, self.provider_id)
        return tuple(schedule for schedule in schedules if schedule.is_active)

    @cached_property
    def appointments(self) -> Tuple[Appointment, ...]:
        tz = self.office.timezone
        window_start = pendulum.datetime(
            self.week_start.year, self.week_start.month, self.week_start.day, tz=tz
        )
        after_end = self.week_end.add(days=1)
        window_end = pendulum.datetime(after_end.year, after_end.month, after_end.day, tz=tz)

        loaded = self.repository.appointments_for(
            self.office.id, self.provider_id, window_start, window_end
        )
        return tuple(
            sorted(self.blocking_policy.filter(loaded), key=lambda appointment: appointment.start)
        )

    @cached_property
    def all_slots(self) -> List[AvailableSlot]:
        generator = SlotGenerator(
            self.work_schedules,
            self.appointments,
            office_id=self.office.id,
            timezone=self.office.timezone,
            blocking_policy=self.blocking_policy,
        )
        return generator.generate(self.week_start, self.week_end)

    @cached_property
    def slots_by_day(self) -> Dict[pendulum.Date, List[AvailableSlot]]:
        grouped: Dict[pendulum.Date, List[AvailableSlot]] = {
            day: [] for day in iter_days(self.week_start, self.week_end)
        }
        for slot in self.all_slots:
            grouped.setdefault(slot.date, []).append(slot)
        return grouped

    @cached_property
    def total_slots(self) -> int:
        return len(self.all_slots)

    @cached_property
    def available_slots(self) -> int:
        return sum(1 for slot in self.all_slots if slot.is_available)

    def result(self) -> WeeklyAvailability:
        return WeeklyAvailability(
            office=self.office,
            provider_id=self.provider_id,
            week_start=self.week_start,
            week_end=self.week_end,
            slots_by_day=self.slots_by_day,
            total_slots=self.total_slots,
            available_slots=self.available_slots,
            appointments=self.appointments,
            work_schedules=self.work_schedules,
        )


class WeeklyAvailabilityCalculator:
    """
    Orchestrates schedule loading, slot generation and weekly statistics.

    Usage:
        calculator = WeeklyAvailabilityCalculator(
            repository,
            office=office,
            provider_id="dr-smith",
            week_start=date(2025, 1, 6),
        )
        result = calculator.calculate()
        result.slots_by_day   # {Date: [AvailableSlot, ...]}
        result.total_slots    # 42
    """

    def __init__(
        self,
        repository: SchedulingRepositoryProtocol,
        *,
        office: Office,
        provider_id: str,
        week_start: WeekStart = None,
        blocking_policy: Optional[BlockingPolicy] = None,
        now: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._repository = repository
        self.office = office
        self.provider_id = provider_id
        self._week_start = week_start
        self._blocking_policy = blocking_policy or BlockingPolicy()
        self._now = now or pendulum.now

    def calculate(self) -> WeeklyAvailability:
        """
        Calculate the availability of the week.

        Raises:
            CalculationError: If the week argument is malformed, or the
                loaded data carries bad values or misses keys
        """
        try:
            week_start = self.week_start()
        except (ValueError, TypeError) as exc:
            logger.warning("Rejected week start %r: %s", self._week_start, exc)
            raise CalculationError("Failed to calculate availability", cause=exc) from exc

        try:
            calculation = _WeekCalculation(
                self._repository,
                self.office,
                self.provider_id,
                week_start,
                self._blocking_policy,
            )
            return calculation.result()
        except (ValueError, KeyError) as exc:
            logger.warning(
                "Availability calculation for office %s, provider %s failed on input data",
                self.office.id,
                self.provider_id,
                exc_info=True,
            )
            raise CalculationError("Failed to calculate availability", cause=exc) from exc
        except Exception:
            logger.exception(
                "Unexpected error in availability calculation for office %s, provider %s",
                self.office.id,
                self.provider_id,
            )
            raise

    def week_start(self) -> pendulum.Date:
        """
        Resolve the first day of the week to calculate.

        Defaults to the Monday of the current week in the office timezone.
        """
        if self._week_start is None:
            today = self._now().in_timezone(self.office.timezone)
            return today.start_of("week").date()

        if isinstance(self._week_start, str):
            parsed = pendulum.from_format(self._week_start, "YYYY-MM-DD")
            return parsed.date()

        if isinstance(self._week_start, date):
            return as_date(self._week_start)

        raise TypeError(f"week_start must be a date or YYYY-MM-DD string, got {self._week_start!r}")
