"""Per-employee, per-day availability windows for the target week."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from weekplanner.config import EngineConfig
from weekplanner.models import EmployeeConstraint, ScheduleRequest

logger = logging.getLogger(__name__)

CLOSED = "closed"
REST_DAY = "rest_day"
REDUCED = "reduced"
AVAILABLE = "available"


@dataclass(frozen=True)
class Availability:
    """At most one contiguous window in which the employee may work."""

    start: Optional[int] = None
    end: Optional[int] = None
    reason: str = AVAILABLE

    @property
    def is_available(self) -> bool:
        return self.start is not None

    @property
    def minutes(self) -> int:
        if self.start is None:
            return 0
        return self.end - self.start


WeekAvailability = Tuple[Availability, ...]


def employee_availability(
    employee: EmployeeConstraint,
    request: ScheduleRequest,
    reduced_ratio: float = 0.5,
) -> WeekAvailability:
    """Availability of one employee for each day of the week.

    Exceptions win over the rest day, which wins over the default opening
    window. A ``reduced`` exception keeps the first ``reduced_ratio`` of the
    opening window; any other exception kind removes the day.
    """
    days = []
    for index, day_date in enumerate(request.week_dates):
        window = request.company.window(index)
        if window is None:
            days.append(Availability(reason=CLOSED))
            continue

        exceptions = employee.exceptions_on(day_date)
        blocking = next((exc for exc in exceptions if exc.is_blocking), None)
        if blocking is not None:
            days.append(Availability(reason=f"exception:{blocking.kind.value}"))
            continue
        if employee.rest_day == index:
            days.append(Availability(reason=REST_DAY))
            continue
        if exceptions:
            start, end = window
            length = int((end - start) * reduced_ratio)
            if length <= 0:
                days.append(Availability(reason=REDUCED))
            else:
                days.append(Availability(start, start + length, REDUCED))
            continue
        days.append(Availability(window[0], window[1], AVAILABLE))
    return tuple(days)


def compute_availability(
    request: ScheduleRequest,
    config: EngineConfig | None = None,
) -> Dict[str, WeekAvailability]:
    """Availability of every employee, keyed by employee id."""
    cfg = config or EngineConfig()
    result: Dict[str, WeekAvailability] = {}
    for employee in request.employees:
        week = employee_availability(employee, request, cfg.defaults.reduced_ratio)
        result[employee.id] = week
        if not any(day.is_available for day in week):
            logger.warning("Employee %s has no available day in week %d", employee.id, request.week_number)
    return result
