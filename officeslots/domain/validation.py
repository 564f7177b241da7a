"""
Schedule validation applied when a work schedule is saved.

The slot engine assumes schedules that passed these checks; it never
validates on the read path.
"""

from __future__ import annotations

from itertools import combinations
from typing import List, Sequence

from .exceptions import ScheduleValidationError
from .overlap import overlaps
from .records import WorkPeriod, WorkSchedule
from .time_parsing import valid_time_format


def validate_work_periods(periods: Sequence[WorkPeriod]) -> List[str]:
    """
    Validate the format and consistency of a day's work periods.

    Returns a list of error messages (empty when valid). Overlap checks are
    skipped once a format error was found since they would be unreliable.
    """
    errors: List[str] = []

    for index, period in enumerate(periods, 1):
        if not (valid_time_format(period.start) and valid_time_format(period.end)):
            errors.append(f"period {index} has invalid time format (use HH:MM)")
            continue

        if period.end_minutes <= period.start_minutes:
            errors.append(f"period {index} end time must be after start time")

    if errors:
        return errors

    for first, second in combinations(periods, 2):
        if overlaps(first.start_minutes, first.end_minutes, second.start_minutes, second.end_minutes):
            errors.append(
                f"periods {first.start}-{first.end} and {second.start}-{second.end} overlap"
            )

    return errors


def validate_work_schedule(schedule: WorkSchedule) -> List[str]:
    """Validate a full work schedule record."""
    errors: List[str] = []

    if schedule.day_of_week not in range(7):
        errors.append(f"day_of_week must be between 0 and 6, got {schedule.day_of_week}")

    if schedule.slot_duration_minutes <= 0:
        errors.append("slot_duration_minutes must be greater than zero")

    if schedule.slot_buffer_minutes < 0:
        errors.append("slot_buffer_minutes must not be negative")

    period_errors = validate_work_periods(schedule.work_periods)
    errors.extend(period_errors)

    if not period_errors and schedule.work_periods and schedule.slot_duration_minutes > 0:
        longest = max(p.end_minutes - p.start_minutes for p in schedule.work_periods)
        if longest < schedule.slot_duration_minutes:
            errors.append(
                "slot_duration_minutes is too long for the work periods "
                f"({longest} minutes available)"
            )

    return errors


def ensure_valid_schedule(schedule: WorkSchedule) -> WorkSchedule:
    """Return the schedule unchanged or raise ScheduleValidationError."""
    errors = validate_work_schedule(schedule)
    if errors:
        raise ScheduleValidationError(errors)
    return schedule
