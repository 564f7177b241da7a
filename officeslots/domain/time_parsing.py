"""
Parsing helpers for wall-clock ``H:MM`` / ``HH:MM`` strings.
"""

from __future__ import annotations

import re
from datetime import time
from typing import Optional, Union

# 24-hour clock, single or double digit hour
TIME_FORMAT_REGEX = re.compile(r"([01]?[0-9]|2[0-3]):([0-5][0-9])")

_DIGITS_REGEX = re.compile(r"\d+")


def valid_time_format(value: object) -> bool:
    """Check if a value is a strict 24-hour ``H:MM`` or ``HH:MM`` string."""
    return isinstance(value, str) and TIME_FORMAT_REGEX.fullmatch(value) is not None


def parse_time_string(value: object) -> Optional[time]:
    """
    Parse ``"HH:MM"`` into a ``datetime.time``.

    Returns None for anything that is not a valid time of day.
    """
    if not isinstance(value, str):
        return None

    match = TIME_FORMAT_REGEX.fullmatch(value)
    if match is None:
        return None

    return time(hour=int(match.group(1)), minute=int(match.group(2)))


def parse_time_to_minutes(value: Union[str, int, None]) -> Optional[int]:
    """
    Convert a time-of-day or a duration into minutes.

    - ``"09:30"`` -> 570 (minutes since midnight)
    - ``"60"`` -> 60 (a duration given as a numeric string)
    - ``540`` -> 540 (integers pass through)

    Returns None for blank or malformed values.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, int):
        return value

    text = str(value).strip()
    if not text:
        return None

    if _DIGITS_REGEX.fullmatch(text):
        return int(text)

    parsed = parse_time_string(text)
    if parsed is None:
        return None

    return parsed.hour * 60 + parsed.minute


def format_minutes_as_time(minutes: Optional[int]) -> str:
    """Render a minute count as ``HH:MM`` (``None`` renders as ``00:00``)."""
    if not minutes:
        return "00:00"

    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"
