"""
Domain value objects for time periods and generated slots.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pendulum import DateTime

from .overlap import overlaps


@dataclass(frozen=True)
class TimePeriod:
    """
    Represents an immutable half-open time range ``[start, end)``.

    Upstream validation guarantees ``start < end``. A period violating that
    is still constructible but counts as empty: it has zero duration and the
    engine ignores it.
    """
    start: DateTime
    end: DateTime

    @property
    def is_empty(self) -> bool:
        # Instants, not wall times: same-zone comparison ignores DST fold
        return self.start.timestamp() >= self.end.timestamp()

    def duration(self) -> timedelta:
        """Return ``end - start``, or zero for an empty period."""
        if self.is_empty:
            return timedelta(0)
        # Elapsed time, not wall-clock difference (DST days)
        return timedelta(seconds=self.end.timestamp() - self.start.timestamp())

    def duration_minutes(self) -> int:
        """Return the duration in whole minutes."""
        return int(self.duration().total_seconds() // 60)

    def overlaps(self, other: "TimePeriod") -> bool:
        """Check if this period overlaps another. Touching periods do not."""
        return overlaps(
            self.start.timestamp(), self.end.timestamp(),
            other.start.timestamp(), other.end.timestamp(),
        )

    def contains(self, instant: DateTime) -> bool:
        """Check if an instant falls within ``[start, end)``."""
        return self.start.timestamp() <= instant.timestamp() < self.end.timestamp()

    def in_timezone(self, timezone: str) -> "TimePeriod":
        return TimePeriod(
            start=self.start.in_timezone(timezone),
            end=self.end.in_timezone(timezone),
        )

    def to_dict(self, timezone: Optional[str] = None) -> Dict[str, Any]:
        """Serialize to ISO 8601 strings, optionally in a given timezone."""
        if timezone is None:
            return {
                "start_time": self.start.to_iso8601_string(),
                "end_time": self.end.to_iso8601_string(),
            }

        local = self.in_timezone(timezone)
        return {
            "start_time": local.start.to_iso8601_string(),
            "end_time": local.end.to_iso8601_string(),
            "timezone": timezone,
        }

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class SlotConfiguration:
    """
    Bundles slot duration, buffer time and the open periods of one day.
    """
    duration: timedelta
    buffer: timedelta
    periods: Tuple[TimePeriod, ...] = ()

    @classmethod
    def from_minutes(
        cls,
        duration_minutes: int,
        buffer_minutes: int = 0,
        periods: Tuple[TimePeriod, ...] = (),
    ) -> "SlotConfiguration":
        return cls(
            duration=timedelta(minutes=duration_minutes),
            buffer=timedelta(minutes=buffer_minutes),
            periods=tuple(periods),
        )

    @property
    def total_slot_duration(self) -> timedelta:
        """Distance between consecutive slot starts (duration plus buffer)."""
        return self.duration + self.buffer


class SlotStatus(str, Enum):
    """Availability status of a generated slot."""
    AVAILABLE = "available"
    BUSY = "busy"

    @classmethod
    def is_valid(cls, value: object) -> bool:
        return value in {status.value for status in cls}


@dataclass(frozen=True)
class AvailableSlot:
    """
    A generated slot, tagged available or busy.

    ``date`` is the calendar date of the slot in the office timezone.
    """
    start: DateTime
    end: DateTime
    date: date
    status: SlotStatus
    office_id: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.status is SlotStatus.AVAILABLE

    @property
    def period(self) -> TimePeriod:
        return TimePeriod(start=self.start, end=self.end)

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, YYYY-MM-DD | HH:MM - HH:MM (status)
        """
        weekday = self.start.format("dddd")
        date_str = self.start.format("YYYY-MM-DD")
        time_str = f"{self.start.format('HH:mm')} - {self.end.format('HH:mm')}"

        return f"{weekday}, {date_str} | {time_str} ({self.status.value})"
