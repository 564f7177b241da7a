"""
Business metrics for work schedules.
"""

from __future__ import annotations

from .records import WorkSchedule


class WorkScheduleCalculator:
    """Calculates work time and slot capacity of a single schedule."""

    def __init__(self, work_schedule: WorkSchedule):
        self.work_schedule = work_schedule

    def total_work_minutes(self) -> int:
        """Total minutes across all work periods. Malformed periods count as zero."""
        total = 0

        for period in self.work_schedule.work_periods:
            start_minutes = period.start_minutes
            end_minutes = period.end_minutes
            if start_minutes is None or end_minutes is None:
                continue
            total += end_minutes - start_minutes

        return total

    def max_appointments_per_day(self) -> int:
        """Number of slots (duration plus buffer) that fit in the work day."""
        minutes = self.total_work_minutes()
        duration = self.work_schedule.slot_duration_minutes
        total_slot_time = duration + self.work_schedule.slot_buffer_minutes

        if minutes <= 0 or duration <= 0 or total_slot_time <= 0:
            return 0

        return minutes // total_slot_time
