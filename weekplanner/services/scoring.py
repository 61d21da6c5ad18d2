"""Soft-preference scoring of candidate weeks.

Each term is computed independently; ``score_schedule`` weights them with
the request's ``PreferencePolicy``. Higher is better.
"""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np

from weekplanner.models import DaySchedule, EmployeeConstraint, ScheduleRequest, WeeklySchedule


def uniformity_term(schedule: WeeklySchedule) -> float:
    """Negative spread of shift start and end times across employees.

    For every day, the population variance (in hours squared) of the first
    start and of the last end among working employees is summed.
    """
    total = 0.0
    for day in range(7):
        starts = []
        ends = []
        for employee_id in schedule.employee_ids:
            day_schedule = schedule.day(employee_id, day)
            if day_schedule.is_working:
                starts.append(day_schedule.first_start / 60.0)
                ends.append(day_schedule.last_end / 60.0)
        if len(starts) > 1:
            total += float(np.var(starts) + np.var(ends))
    return -total


def balance_term(request: ScheduleRequest, schedule: WeeklySchedule) -> float:
    """Negative variance of (scheduled - contracted) hours."""
    gaps = [
        schedule.active_minutes(emp.id) / 60.0 - emp.weekly_hours
        for emp in request.employees
    ]
    if len(gaps) < 2:
        return -(gaps[0] ** 2) if gaps else 0.0
    return -float(np.var(gaps))


def _matches_preferred_hours(employee: EmployeeConstraint, day: DaySchedule) -> bool:
    first, last = day.first_start, day.last_end
    return any(start <= first and last <= end for start, end in employee.preferred_hours)


def employee_preference_term(request: ScheduleRequest, schedule: WeeklySchedule) -> float:
    """Matched preferred-hour windows, honored rest days and preferred days."""
    matched = 0
    for employee in request.employees:
        week = schedule.week_of(employee.id)
        if employee.rest_day is not None and not week[employee.rest_day].is_working:
            matched += 1
        preferred_days = set(employee.preferred_days)
        for index, day in enumerate(week):
            if not day.is_working:
                continue
            if employee.preferred_hours and _matches_preferred_hours(employee, day):
                matched += 1
            if index in preferred_days:
                matched += 1
    return float(matched)


def split_term(schedule: WeeklySchedule) -> float:
    """Number of split employee-days."""
    return float(sum(1 for _, _, day in schedule.iter_days() if day.is_split))


def score_schedule(request: ScheduleRequest, schedule: WeeklySchedule) -> Tuple[float, Dict[str, float]]:
    """Weighted score of a candidate week.

    Returns:
        ``(score, terms)`` where ``terms`` holds the unweighted value of each
        policy term by name.
    """
    terms = {
        "split": split_term(schedule),
        "uniformity": uniformity_term(schedule),
        "balance": balance_term(request, schedule),
        "employee_preferences": employee_preference_term(request, schedule),
    }
    score = sum(weight * terms[name] for name, weight in request.policy.terms())
    return score, terms
