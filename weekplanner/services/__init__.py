"""Services for scheduling logic."""

from .availability import Availability, compute_availability
from .constraints import coverage_for_day, deficit_ranges, has_overlap
from .normalizer import normalize_request
from .scoring import score_schedule
from .timeplan import format_minutes, parse_time_range, to_minutes, week_dates

__all__ = [
    "Availability",
    "compute_availability",
    "coverage_for_day",
    "deficit_ranges",
    "has_overlap",
    "normalize_request",
    "score_schedule",
    "format_minutes",
    "parse_time_range",
    "to_minutes",
    "week_dates",
]
