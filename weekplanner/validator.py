"""Hard-constraint validation of a generated week.

The validator never changes the schedule; it only reports what is wrong
with it. ``raise_on_internal_faults`` separates constraint conflicts caused
by the input (staffing shortages, short availability) from rule breaches
the engine should never produce.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from .config import EngineConfig
from .errors import InternalComputationError
from .models import (
    WEEKDAYS,
    DaySchedule,
    EmployeeConstraint,
    ScheduleRequest,
    Violation,
    ViolationKind,
    WeeklySchedule,
)
from .services.availability import REDUCED, WeekAvailability
from .services.constraints import consecutive_runs, coverage_for_day, deficit_ranges, overlapping_pairs, within_window
from .services.timeplan import format_minutes

logger = logging.getLogger(__name__)

INTERNAL_FAULT_KINDS = frozenset(
    {
        ViolationKind.OVERLAP,
        ViolationKind.OUTSIDE_OPENING_HOURS,
        ViolationKind.DAILY_HOURS_EXCEEDED,
        ViolationKind.REST_DAY,
        ViolationKind.EXCEPTION,
        ViolationKind.CONSECUTIVE_DAYS,
    }
)


def _check_day(
    request: ScheduleRequest,
    employee: EmployeeConstraint,
    index: int,
    day: DaySchedule,
    week: WeekAvailability,
    cfg: EngineConfig,
) -> List[Violation]:
    found: List[Violation] = []
    name = WEEKDAYS[index]
    company = request.company

    for first, second in overlapping_pairs(day.slots):
        found.append(
            Violation(
                ViolationKind.OVERLAP,
                index,
                f"{format_minutes(first.start)}-{format_minutes(first.end)} overlaps "
                f"{format_minutes(second.start)}-{format_minutes(second.end)}",
                employee.id,
                second.start,
                min(first.end, second.end),
            )
        )

    window = company.window(index)
    if window is None or not within_window(day, window):
        found.append(
            Violation(ViolationKind.OUTSIDE_OPENING_HOURS, index, f"Slots outside opening hours on {name}", employee.id)
        )

    if not day.is_working:
        return found

    if employee.rest_day == index:
        found.append(Violation(ViolationKind.REST_DAY, index, f"Works on rest day {name}", employee.id))

    exceptions = employee.exceptions_on(request.week_dates[index])
    blocking = [exc for exc in exceptions if exc.is_blocking]
    if blocking:
        found.append(
            Violation(
                ViolationKind.EXCEPTION,
                index,
                f"Works on {request.week_dates[index].isoformat()} despite {blocking[0].kind.value} exception",
                employee.id,
            )
        )
    elif exceptions and week[index].reason == REDUCED:
        avail = week[index]
        if not avail.is_available or any(s.start < avail.start or s.end > avail.end for s in day.slots):
            found.append(
                Violation(
                    ViolationKind.EXCEPTION,
                    index,
                    f"Works beyond reduced availability on {request.week_dates[index].isoformat()}",
                    employee.id,
                )
            )

    active = day.active_minutes
    if active > company.max_day_minutes:
        found.append(
            Violation(
                ViolationKind.DAILY_HOURS_EXCEEDED,
                index,
                f"{active / 60:.2f}h exceeds the {company.max_hours_per_day:g}h daily maximum",
                employee.id,
            )
        )
    elif active < company.min_day_minutes:
        found.append(
            Violation(
                ViolationKind.DAILY_HOURS_BELOW_MINIMUM,
                index,
                f"{active / 60:.2f}h is below the {company.min_hours_per_day:g}h daily minimum",
                employee.id,
            )
        )

    if company.mandatory_lunch_break and active > cfg.lunch_break_threshold_minutes:
        has_break = any(s.is_break and s.minutes >= company.lunch_break_minutes for s in day.slots)
        too_long = [run for run in day.active_runs() if run[1] - run[0] > cfg.lunch_break_threshold_minutes]
        if not has_break or too_long:
            found.append(
                Violation(
                    ViolationKind.LUNCH_BREAK,
                    index,
                    f"Missing {company.lunch_break_minutes}-minute lunch break on {name}",
                    employee.id,
                )
            )
    return found


def validate_schedule(
    request: ScheduleRequest,
    availability: Dict[str, WeekAvailability],
    schedule: WeeklySchedule,
    config: EngineConfig | None = None,
) -> List[Violation]:
    """Check every hard constraint and list the violations found.

    An empty list means the week is feasible. An employee who cannot work
    at all (closed days, exceptions and rest day cover the whole week) is
    reported as NO_AVAILABILITY rather than raised.
    """
    cfg = config or EngineConfig()
    violations: List[Violation] = []

    for employee in request.employees:
        week = availability[employee.id]
        days = schedule.week_of(employee.id)
        if not any(day.is_available for day in week):
            violations.append(
                Violation(
                    ViolationKind.NO_AVAILABILITY,
                    None,
                    f"Employee {employee.id} has no workable day this week",
                    employee.id,
                )
            )
        for index, day in enumerate(days):
            if day.slots:
                violations.extend(_check_day(request, employee, index, day, week, cfg))

        worked = [index for index, day in enumerate(days) if day.is_working]
        for run in consecutive_runs(worked):
            if len(run) > employee.max_consecutive_days:
                violations.append(
                    Violation(
                        ViolationKind.CONSECUTIVE_DAYS,
                        run[0],
                        f"{len(run)} consecutive working days, limit {employee.max_consecutive_days}",
                        employee.id,
                    )
                )

    company = request.company
    for index in range(7):
        window = company.window(index)
        if window is None:
            continue
        coverage = coverage_for_day((schedule.day(emp.id, index) for emp in request.employees), window)
        for start, end, lowest in deficit_ranges(coverage, window[0], company.min_staff):
            violations.append(
                Violation(
                    ViolationKind.STAFFING_DEFICIT,
                    index,
                    f"{lowest} of {company.min_staff} required staff "
                    f"between {format_minutes(start)} and {format_minutes(end)}",
                    start=start,
                    end=end,
                )
            )
    return violations


def raise_on_internal_faults(violations: Sequence[Violation]) -> None:
    """Raise InternalComputationError if any violation is an engine fault."""
    faults = [v for v in violations if v.kind in INTERNAL_FAULT_KINDS]
    if not faults:
        return
    for fault in faults:
        logger.error("Engine fault %s on day %s for %s: %s", fault.kind.value, fault.day, fault.employee_id, fault.message)
    raise InternalComputationError(
        f"Schedule generation produced {len(faults)} rule breach(es): {faults[0].message}",
        faults,
    )
