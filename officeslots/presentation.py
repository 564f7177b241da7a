"""
Pure projections of engine results into display strings and JSON-ready dicts.

Nothing here affects the slot calculation itself.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from pendulum import DateTime

from .domain.models import AvailableSlot
from .services.weekly_availability import WeeklyAvailability


def format_time_24h(value: Optional[DateTime], timezone: Optional[str] = None) -> str:
    """Format as ``HH:mm``, optionally converted to a timezone."""
    if value is None:
        return ""
    local = value.in_timezone(timezone) if timezone else value
    return local.format("HH:mm")


def format_datetime_24h(value: Optional[DateTime], timezone: Optional[str] = None) -> str:
    """Format as ``YYYY-MM-DD HH:mm``."""
    if value is None:
        return ""
    local = value.in_timezone(timezone) if timezone else value
    return local.format("YYYY-MM-DD HH:mm")


def format_date_iso(value: Optional[date]) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d")


def format_time_range(
    start: Optional[DateTime],
    end: Optional[DateTime],
    timezone: Optional[str] = None,
) -> str:
    """Format as ``HH:mm - HH:mm``."""
    if start is None or end is None:
        return ""
    return f"{format_time_24h(start, timezone)} - {format_time_24h(end, timezone)}"


def format_duration(minutes: Optional[int]) -> str:
    """
    Format a minute count as hours and minutes.

    Example: 90 -> "1h 30m", 60 -> "1h", 45 -> "45m"
    """
    if minutes is None:
        return ""

    hours, mins = divmod(minutes, 60)
    if hours and mins:
        return f"{hours}h {mins}m"
    if hours:
        return f"{hours}h"
    return f"{mins}m"


def slot_to_dict(slot: AvailableSlot) -> Dict[str, Any]:
    return {
        "start_time": slot.start.to_iso8601_string(),
        "end_time": slot.end.to_iso8601_string(),
        "date": format_date_iso(slot.date),
        "status": slot.status.value,
    }


def weekly_availability_to_dict(result: WeeklyAvailability) -> Dict[str, Any]:
    """Render a weekly result for a JSON consumer."""
    slots_by_day: Dict[str, List[Dict[str, Any]]] = {
        format_date_iso(day): [slot_to_dict(slot) for slot in slots]
        for day, slots in sorted(result.slots_by_day.items())
    }

    return {
        "office_id": result.office.id,
        "provider_id": result.provider_id,
        "timezone": result.office.timezone,
        "week_start": format_date_iso(result.week_start),
        "week_end": format_date_iso(result.week_end),
        "total_slots": result.total_slots,
        "available_slots": result.available_slots,
        "busy_slots": result.busy_slots,
        "slots_by_day": slots_by_day,
    }
