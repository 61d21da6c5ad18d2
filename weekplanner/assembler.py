"""Packaging of a validated week into the output model."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

from .models import (
    WEEKDAYS,
    DaySchedule,
    GenerationResult,
    ScheduleRequest,
    TimeSlot,
    Violation,
    WeeklySchedule,
)
from .services.timeplan import format_minutes, to_minutes

# Share of the contract an employee must reach to count as fully scheduled.
FULL_SCHEDULE_RATIO = 0.9


def compute_stats(request: ScheduleRequest, schedule: WeeklySchedule) -> Dict[str, float]:
    """Roster-level totals of the week, hours rounded to two decimals."""
    hours = {emp.id: schedule.active_minutes(emp.id) / 60.0 for emp in request.employees}
    total = sum(hours.values())
    count = len(request.employees)
    full = sum(
        1
        for emp in request.employees
        if emp.weekly_hours > 0 and hours[emp.id] >= emp.weekly_hours * FULL_SCHEDULE_RATIO
    )
    active_days = sum(
        1
        for day in range(7)
        if any(schedule.day(emp.id, day).is_working for emp in request.employees)
    )
    return {
        "totalEmployees": count,
        "totalHours": round(total, 2),
        "averageHoursPerEmployee": round(total / count, 2) if count else 0.0,
        "employeesWithFullSchedule": full,
        "daysWithActivity": active_days,
    }


def assemble_result(
    request: ScheduleRequest,
    outcome,
    violations: Sequence[Violation],
    elapsed_ms: float,
) -> GenerationResult:
    """Build the GenerationResult of an optimizer outcome and its violations."""
    schedule = outcome.best.schedule
    return GenerationResult(
        request=request,
        schedule=schedule,
        violations=tuple(violations),
        stats=compute_stats(request, schedule),
        execution_time_ms=round(elapsed_ms, 3),
        strategy=outcome.best.strategy.name,
        score=outcome.score,
        candidates_evaluated=outcome.evaluated,
        warnings=tuple(outcome.best.warnings),
    )


def _slot_payload(slot: TimeSlot) -> Dict[str, Any]:
    return {
        "start": format_minutes(slot.start),
        "end": format_minutes(slot.end),
        "isLunchBreak": slot.is_break,
    }


def schedule_to_payload(schedule: WeeklySchedule) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    return {
        employee_id: {WEEKDAYS[index]: [_slot_payload(s) for s in day.slots] for index, day in enumerate(week)}
        for employee_id, week in schedule.days.items()
    }


def schedule_from_payload(data: Mapping[str, Mapping[str, Sequence[Mapping[str, Any]]]]) -> WeeklySchedule:
    """Rebuild a WeeklySchedule from the ``schedule`` block of a result."""
    days = {}
    for employee_id, week in data.items():
        days[employee_id] = [
            DaySchedule(
                tuple(
                    TimeSlot(to_minutes(slot["start"]), to_minutes(slot["end"]), bool(slot.get("isLunchBreak", False)))
                    for slot in week.get(name, [])
                )
            )
            for name in WEEKDAYS
        ]
    return WeeklySchedule.from_days(days)


def violation_to_payload(violation: Violation, request: ScheduleRequest) -> Dict[str, Any]:
    day = violation.day
    return {
        "type": violation.kind.value,
        "day": WEEKDAYS[day] if day is not None else None,
        "date": request.week_dates[day].isoformat() if day is not None else None,
        "employeeId": violation.employee_id,
        "start": format_minutes(violation.start) if violation.start is not None else None,
        "end": format_minutes(violation.end) if violation.end is not None else None,
        "message": violation.message,
    }


def result_to_payload(result: GenerationResult) -> Dict[str, Any]:
    """Serialize a GenerationResult to the camelCase output object."""
    request = result.request
    return {
        "success": True,
        "feasible": result.feasible,
        "teamId": request.team_id,
        "weekNumber": request.week_number,
        "year": request.year,
        "strategy": result.strategy,
        "schedule": schedule_to_payload(result.schedule),
        "stats": dict(result.stats),
        "violations": [violation_to_payload(v, request) for v in result.violations],
        "warnings": list(result.warnings),
        "candidatesEvaluated": result.candidates_evaluated,
        "executionTimeMs": result.execution_time_ms,
    }
