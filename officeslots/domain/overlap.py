"""
Half-open interval overlap checks shared by schedule validation and the
slot engine.

Two intervals ``[start_a, end_a)`` and ``[start_b, end_b)`` overlap when
each one starts before the other ends. Adjacent intervals
(``end_a == start_b``) do not overlap. Works with any comparable values:
datetimes or minutes since midnight.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, List

if TYPE_CHECKING:
    from .models import TimePeriod


def overlaps(start_a: Any, end_a: Any, start_b: Any, end_b: Any) -> bool:
    """Return True if ``[start_a, end_a)`` and ``[start_b, end_b)`` overlap."""
    return start_a < end_b and start_b < end_a


def contains(outer_start: Any, outer_end: Any, inner_start: Any, inner_end: Any) -> bool:
    """Return True if the inner interval lies completely within the outer one."""
    return outer_start <= inner_start and inner_end <= outer_end


class OverlapChecker:
    """
    Checks candidate ranges against a fixed set of busy periods.

    Empty or inverted busy periods never block anything.
    """

    def __init__(self, busy_periods: Iterable["TimePeriod"]):
        self._busy_periods = tuple(
            period for period in busy_periods if not period.is_empty
        )

    def __len__(self) -> int:
        return len(self._busy_periods)

    def any_overlap(self, start: Any, end: Any) -> bool:
        """Check if any busy period overlaps ``[start, end)``."""
        return any(
            overlaps(busy.start, busy.end, start, end)
            for busy in self._busy_periods
        )

    def find_overlapping(self, start: Any, end: Any) -> List["TimePeriod"]:
        """Return the busy periods overlapping ``[start, end)``."""
        return [
            busy for busy in self._busy_periods
            if overlaps(busy.start, busy.end, start, end)
        ]
