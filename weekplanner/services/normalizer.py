"""Request validation and default filling.

Turns the camelCase payload sent by the planning wizard into a
``ScheduleRequest``. Every problem found is collected and reported at once
through ``InputValidationError``; nothing out of range is clamped.

The field names of the older backend payload (``_id``,
``contractHoursPerWeek``, ``preferences.*``, ``openDays``, ``openHours``,
``minEmployeesPerSlot``) are accepted as aliases.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from weekplanner.config import EngineConfig
from weekplanner.errors import InputValidationError
from weekplanner.models import (
    CompanyConstraint,
    EmployeeConstraint,
    ExceptionKind,
    PreferencePolicy,
    ScheduleException,
    ScheduleRequest,
    Window,
)

from .timeplan import parse_time_range, to_minutes, week_dates, weekday_index

logger = logging.getLogger(__name__)

Issues = List[Dict[str, str]]

_MISSING = object()


def _issue(issues: Issues, field: str, message: str) -> None:
    issues.append({"field": field, "message": message})


def _get(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return _MISSING


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _integer(raw, key: str, field: str, issues: Issues) -> Optional[int]:
    value = raw.get(key)
    if value is None:
        _issue(issues, field, "is required")
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        _issue(issues, field, "must be an integer")
        return None
    return value


def _number(
    value: Any,
    field: str,
    issues: Issues,
    low: float,
    high: float,
    low_inclusive: bool = True,
) -> Optional[float]:
    if not _is_number(value):
        _issue(issues, field, "must be a number")
        return None
    too_low = value < low if low_inclusive else value <= low
    if too_low or value > high:
        bracket = "[" if low_inclusive else "("
        _issue(issues, field, f"must be in {bracket}{low}, {high}]")
        return None
    return float(value)


def _boolean(value: Any, field: str, issues: Issues, default: bool = False) -> bool:
    if value is _MISSING:
        return default
    if not isinstance(value, bool):
        _issue(issues, field, "must be a boolean")
        return default
    return value


def _weekday(value: Any, field: str, issues: Issues) -> Optional[int]:
    try:
        return weekday_index(value)
    except ValueError as exc:
        _issue(issues, field, str(exc))
        return None


def _weekday_list(value: Any, field: str, issues: Issues) -> Tuple[int, ...]:
    if not isinstance(value, list):
        _issue(issues, field, "must be a list of weekday names")
        return ()
    days: List[int] = []
    for i, name in enumerate(value):
        index = _weekday(name, f"{field}[{i}]", issues)
        if index is not None and index not in days:
            days.append(index)
    return tuple(sorted(days))


def _time_range(value: Any, field: str, issues: Issues) -> Optional[Window]:
    try:
        return parse_time_range(value)
    except ValueError as exc:
        _issue(issues, field, str(exc))
        return None


def _opening_windows(raw: Mapping[str, Any], open_days, cfg: EngineConfig, issues: Issues):
    """Resolve the opening window of each weekday.

    Precedence: per-day ``{day, hours}`` entry, then the first plain
    ``"HH:MM-HH:MM"`` entry, then ``dailyOpeningTime``/``dailyClosingTime``,
    then the configured default. Only the first range of an entry is used.
    """
    per_day: Dict[int, Window] = {}
    shared: Optional[Window] = None
    hours = _get(raw, "openingHours", "openHours")
    if hours is not _MISSING:
        if not isinstance(hours, list):
            _issue(issues, "companyConstraints.openingHours", "must be a list")
            hours = []
        for i, entry in enumerate(hours):
            field = f"companyConstraints.openingHours[{i}]"
            if isinstance(entry, str):
                window = _time_range(entry, field, issues)
                if shared is None:
                    shared = window
            elif isinstance(entry, Mapping):
                day = _weekday(entry.get("day"), f"{field}.day", issues)
                ranges = entry.get("hours")
                if not isinstance(ranges, list) or not ranges:
                    _issue(issues, f"{field}.hours", "must be a non-empty list of HH:MM-HH:MM")
                    continue
                window = _time_range(ranges[0], f"{field}.hours[0]", issues)
                if day is not None and window is not None and day not in per_day:
                    per_day[day] = window
            else:
                _issue(issues, field, "must be 'HH:MM-HH:MM' or {day, hours}")

    if shared is None:
        opening = _get(raw, "dailyOpeningTime")
        closing = _get(raw, "dailyClosingTime")
        if opening is not _MISSING or closing is not _MISSING:
            opening = cfg.defaults.opening_time if opening is _MISSING else opening
            closing = cfg.defaults.closing_time if closing is _MISSING else closing
            shared = _time_range(f"{opening}-{closing}", "companyConstraints.dailyOpeningTime", issues)
    if shared is None:
        shared = parse_time_range(f"{cfg.defaults.opening_time}-{cfg.defaults.closing_time}")

    return tuple(per_day.get(d, shared) if d in open_days else None for d in range(7))


def _normalize_company(raw: Any, cfg: EngineConfig, issues: Issues) -> Optional[CompanyConstraint]:
    if not isinstance(raw, Mapping):
        _issue(issues, "companyConstraints", "must be an object")
        return None
    defaults = cfg.defaults

    days_value = _get(raw, "openingDays", "openDays")
    if days_value is _MISSING:
        open_days = tuple(weekday_index(d) for d in defaults.opening_days)
    else:
        open_days = _weekday_list(days_value, "companyConstraints.openingDays", issues)

    windows = _opening_windows(raw, open_days, cfg, issues)

    min_staff = defaults.min_staff
    value = _get(raw, "minStaffSimultaneously", "minEmployeesPerSlot")
    if value is not _MISSING:
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            _issue(issues, "companyConstraints.minStaffSimultaneously", "must be a non-negative integer")
        else:
            min_staff = value

    max_hours = defaults.max_hours_per_day
    value = _get(raw, "maxHoursPerDay")
    if value is not _MISSING:
        max_hours = _number(value, "companyConstraints.maxHoursPerDay", issues, 1, 24) or max_hours

    min_hours = defaults.min_hours_per_day
    value = _get(raw, "minHoursPerDay")
    if value is not _MISSING:
        checked = _number(value, "companyConstraints.minHoursPerDay", issues, 0, 24)
        min_hours = min_hours if checked is None else checked
    if min_hours > max_hours:
        _issue(issues, "companyConstraints.minHoursPerDay", "must not exceed maxHoursPerDay")

    lunch_minutes = defaults.lunch_break_minutes
    value = _get(raw, "lunchBreakDuration")
    if value is not _MISSING:
        checked = _number(value, "companyConstraints.lunchBreakDuration", issues, 15, 180)
        lunch_minutes = lunch_minutes if checked is None else int(round(checked))

    mandatory = _boolean(_get(raw, "mandatoryLunchBreak"), "companyConstraints.mandatoryLunchBreak", issues)

    return CompanyConstraint(
        opening_windows=windows,
        min_staff=min_staff,
        min_hours_per_day=min_hours,
        max_hours_per_day=max_hours,
        mandatory_lunch_break=mandatory,
        lunch_break_minutes=lunch_minutes,
    )


def _normalize_exceptions(value: Any, field: str, issues: Issues) -> Tuple[ScheduleException, ...]:
    if not isinstance(value, list):
        _issue(issues, field, "must be a list")
        return ()
    result: List[ScheduleException] = []
    for i, raw in enumerate(value):
        item_field = f"{field}[{i}]"
        if not isinstance(raw, Mapping):
            _issue(issues, item_field, "must be an object")
            continue
        try:
            when = date.fromisoformat(str(raw.get("date", "")))
        except ValueError:
            _issue(issues, f"{item_field}.date", "must be an ISO date (YYYY-MM-DD)")
            continue
        kind_value = raw.get("type") or ExceptionKind.UNAVAILABLE.value
        try:
            kind = ExceptionKind(kind_value)
        except ValueError:
            _issue(issues, f"{item_field}.type", f"unknown exception type '{kind_value}'")
            continue
        reason = raw.get("reason") or raw.get("description") or ""
        result.append(ScheduleException(date=when, kind=kind, reason=str(reason)))
    return tuple(result)


def _normalize_employee(raw: Any, index: int, cfg: EngineConfig, issues: Issues) -> Optional[EmployeeConstraint]:
    field = f"employees[{index}]"
    if not isinstance(raw, Mapping):
        _issue(issues, field, "must be an object")
        return None
    prefs = raw.get("preferences") if isinstance(raw.get("preferences"), Mapping) else {}
    errors_before = len(issues)

    emp_id = _get(raw, "id", "_id")
    if emp_id is _MISSING or isinstance(emp_id, bool) or not isinstance(emp_id, (str, int)) or str(emp_id) == "":
        _issue(issues, f"{field}.id", "is required (string or integer)")
        emp_id = ""

    weekly = cfg.defaults.weekly_hours
    value = _get(raw, "weeklyHours", "contractHoursPerWeek")
    if value is not _MISSING:
        checked = _number(value, f"{field}.weeklyHours", issues, 0, cfg.max_weekly_hours, low_inclusive=False)
        weekly = weekly if checked is None else checked

    rest_day = None
    value = _get(raw, "restDay")
    if value is not _MISSING and value != "":
        rest_day = _weekday(value, f"{field}.restDay", issues)

    preferred_hours: List[Window] = []
    value = _get(raw, "preferredHours")
    if value is _MISSING:
        value = _get(prefs, "preferredHours")
    if value is not _MISSING:
        if not isinstance(value, list):
            _issue(issues, f"{field}.preferredHours", "must be a list")
        else:
            for i, item in enumerate(value):
                window = _time_range(item, f"{field}.preferredHours[{i}]", issues)
                if window is not None:
                    preferred_hours.append(window)

    exceptions: Tuple[ScheduleException, ...] = ()
    value = _get(raw, "exceptions")
    if value is not _MISSING:
        exceptions = _normalize_exceptions(value, f"{field}.exceptions", issues)

    split_value = _get(raw, "allowSplitShifts")
    if split_value is _MISSING:
        split_value = _get(prefs, "allowSplitShifts")
    allow_split = _boolean(split_value, f"{field}.allowSplitShifts", issues)

    preferred_days: Tuple[int, ...] = ()
    value = _get(raw, "preferredDays")
    if value is _MISSING:
        value = _get(prefs, "preferredDays")
    if value is not _MISSING:
        preferred_days = _weekday_list(value, f"{field}.preferredDays", issues)

    max_consecutive = cfg.defaults.max_consecutive_days
    value = _get(raw, "maxConsecutiveDays")
    if value is _MISSING:
        value = _get(prefs, "maxConsecutiveDays")
    if value is not _MISSING:
        if not isinstance(value, int) or isinstance(value, bool) or not 1 <= value <= 7:
            _issue(issues, f"{field}.maxConsecutiveDays", "must be an integer in [1, 7]")
        else:
            max_consecutive = value

    if len(issues) > errors_before:
        return None
    return EmployeeConstraint(
        id=str(emp_id),
        name=str(raw.get("name") or ""),
        email=str(raw.get("email") or ""),
        weekly_hours=weekly,
        rest_day=rest_day,
        preferred_hours=tuple(preferred_hours),
        exceptions=exceptions,
        allow_split_shifts=allow_split,
        preferred_days=preferred_days,
        max_consecutive_days=max_consecutive,
    )


def _weight(value: Any, field: str, issues: Issues, default_weight: float) -> float:
    if value is _MISSING or value is False:
        return 0.0
    if value is True:
        return default_weight
    if _is_number(value) and value >= 0:
        return float(value)
    _issue(issues, field, "must be a boolean or a non-negative number")
    return 0.0


def _normalize_policy(raw: Any, cfg: EngineConfig, issues: Issues) -> PreferencePolicy:
    if not isinstance(raw, Mapping):
        _issue(issues, "preferences", "must be an object")
        return PreferencePolicy()
    weight = cfg.defaults.preference_weight
    split = _weight(_get(raw, "favorSplit"), "preferences.favorSplit", issues, weight)
    return PreferencePolicy(
        # Splits are penalized unless explicitly favored.
        split=split if split > 0 else -weight,
        uniformity=_weight(_get(raw, "favorUniformity"), "preferences.favorUniformity", issues, weight),
        balance=_weight(_get(raw, "balanceWorkload"), "preferences.balanceWorkload", issues, weight),
        employee_preferences=_weight(
            _get(raw, "prioritizeEmployeePreferences"),
            "preferences.prioritizeEmployeePreferences",
            issues,
            weight,
        ),
    )


def normalize_request(payload: Any, config: EngineConfig | None = None) -> ScheduleRequest:
    """Validate a raw generation payload and fill its defaults.

    Args:
        payload: Decoded JSON object following the generation input contract.
        config: Engine configuration supplying defaults and bounds.

    Returns:
        ScheduleRequest ready for availability computation.

    Raises:
        InputValidationError: Listing every malformed or out-of-range field.
    """
    cfg = config or EngineConfig()
    if not isinstance(payload, Mapping):
        raise InputValidationError([{"field": "", "message": "request payload must be an object"}])
    issues: Issues = []

    week = _integer(payload, "weekNumber", "weekNumber", issues)
    if week is not None and not 1 <= week <= 52:
        _issue(issues, "weekNumber", "must be in [1, 52]")
        week = None
    year = _integer(payload, "year", "year", issues)
    if year is not None and not cfg.min_year <= year <= cfg.max_year:
        _issue(issues, "year", f"must be in [{cfg.min_year}, {cfg.max_year}]")
        year = None

    company = _normalize_company(payload.get("companyConstraints") or {}, cfg, issues)

    raw_employees = payload.get("employees")
    employees: List[EmployeeConstraint] = []
    if not isinstance(raw_employees, list) or not raw_employees:
        _issue(issues, "employees", "must be a non-empty list")
    else:
        seen = set()
        for index, raw in enumerate(raw_employees):
            employee = _normalize_employee(raw, index, cfg, issues)
            if employee is None:
                continue
            if employee.id in seen:
                _issue(issues, f"employees[{index}].id", f"duplicate employee id '{employee.id}'")
                continue
            seen.add(employee.id)
            employees.append(employee)

    policy = _normalize_policy(payload.get("preferences") or {}, cfg, issues)

    if issues:
        logger.info("Rejected schedule request with %d issue(s)", len(issues))
        raise InputValidationError(issues)

    team_id = payload.get("teamId")
    request = ScheduleRequest(
        team_id="" if team_id is None else str(team_id),
        week_number=week,
        year=year,
        week_dates=week_dates(year, week),
        employees=tuple(employees),
        company=company,
        policy=policy,
    )
    logger.debug(
        "Normalized request for %d-W%02d: %d employees, open days %s",
        year,
        week,
        len(employees),
        company.opening_days,
    )
    return request
