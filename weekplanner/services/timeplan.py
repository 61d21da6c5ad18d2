"""Time-of-day and calendar helpers."""

from __future__ import annotations

import re
from datetime import date
from typing import Tuple

from weekplanner.models import WEEKDAYS, Window

_HM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")

# French weekday names are accepted as aliases.
_FRENCH_WEEKDAYS = {
    "lundi": 0,
    "mardi": 1,
    "mercredi": 2,
    "jeudi": 3,
    "vendredi": 4,
    "samedi": 5,
    "dimanche": 6,
}


def to_minutes(value: str) -> int:
    """Convert ``"HH:MM"`` to minutes since midnight. ``"24:00"`` is accepted."""
    match = _HM_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time '{value}', expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if minutes >= 60 or hours > 24 or (hours == 24 and minutes):
        raise ValueError(f"Invalid time '{value}'")
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_time_range(value: str) -> Window:
    """Parse ``"HH:MM-HH:MM"`` into a (start, end) minute window."""
    if not isinstance(value, str) or value.count("-") != 1:
        raise ValueError(f"Invalid time range '{value}', expected HH:MM-HH:MM")
    start_hm, end_hm = value.split("-")
    start, end = to_minutes(start_hm), to_minutes(end_hm)
    if start >= end:
        raise ValueError(f"Time range '{value}' must start before it ends")
    return start, end


def weekday_index(name: str) -> int:
    """Index 0-6 of an English (or French) weekday name, case-insensitive."""
    key = name.strip().lower() if isinstance(name, str) else ""
    if key in WEEKDAYS:
        return WEEKDAYS.index(key)
    if key in _FRENCH_WEEKDAYS:
        return _FRENCH_WEEKDAYS[key]
    raise ValueError(f"Unknown weekday '{name}'")


def week_dates(year: int, week_number: int) -> Tuple[date, ...]:
    """Monday-to-Sunday dates of an ISO week."""
    return tuple(date.fromisocalendar(year, week_number, dow) for dow in range(1, 8))
