"""Tests for request normalization."""

from datetime import date

import pytest

from conftest import make_payload
from weekplanner.config import EngineConfig, DefaultsConfig
from weekplanner.errors import InputValidationError
from weekplanner.models import ExceptionKind
from weekplanner.services.normalizer import normalize_request


def _fields(excinfo):
    return [issue["field"] for issue in excinfo.value.issues]


def test_defaults_filled(payload):
    request = normalize_request(payload)
    company = request.company
    assert company.opening_days == (0, 1, 2, 3, 4)
    assert company.window(0) == (540, 1020)
    assert company.window(5) is None
    assert company.min_staff == 1
    assert company.min_hours_per_day == 2.0
    assert company.max_hours_per_day == 8.0
    assert company.lunch_break_minutes == 60
    assert not company.mandatory_lunch_break

    employee = request.employees[0]
    assert employee.weekly_hours == 32
    assert employee.rest_day is None
    assert employee.max_consecutive_days == 5
    assert request.week_dates[0] == date(2025, 3, 17)


def test_missing_company_constraints_use_config_defaults():
    payload = make_payload()
    del payload["companyConstraints"]
    cfg = EngineConfig(defaults=DefaultsConfig(opening_time="08:00", closing_time="16:00", opening_days=["monday"]))
    request = normalize_request(payload, cfg)
    assert request.company.opening_days == (0,)
    assert request.company.window(0) == (480, 960)


def test_weekly_hours_default_when_absent():
    payload = make_payload(employees=[{"id": "e1", "name": "A"}])
    assert normalize_request(payload).employees[0].weekly_hours == 35.0


@pytest.mark.parametrize("week", [0, 53, -1])
def test_week_number_out_of_range_is_not_coerced(week):
    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(make_payload(weekNumber=week))
    assert _fields(excinfo) == ["weekNumber"]


def test_week_number_must_be_integer():
    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(make_payload(weekNumber="12"))
    assert "weekNumber" in _fields(excinfo)

    with pytest.raises(InputValidationError):
        normalize_request(make_payload(weekNumber=True))


def test_year_bounds_follow_config():
    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(make_payload(year=1999))
    assert _fields(excinfo) == ["year"]

    cfg = EngineConfig(min_year=1990)
    assert normalize_request(make_payload(year=1999), cfg).year == 1999


def test_all_issues_reported_at_once():
    payload = make_payload(
        employees=[{"id": "e1", "weeklyHours": 0, "restDay": "someday"}],
        company={"maxHoursPerDay": 30, "lunchBreakDuration": 5},
        weekNumber=60,
    )
    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(payload)
    fields = _fields(excinfo)
    assert "weekNumber" in fields
    assert "companyConstraints.maxHoursPerDay" in fields
    assert "companyConstraints.lunchBreakDuration" in fields
    assert "employees[0].weeklyHours" in fields
    assert "employees[0].restDay" in fields
    assert "weekNumber" in str(excinfo.value)


def test_weekly_hours_upper_bound():
    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(make_payload(employees=[{"id": "e1", "weeklyHours": 61}]))
    assert _fields(excinfo) == ["employees[0].weeklyHours"]
    request = normalize_request(make_payload(employees=[{"id": "e1", "weeklyHours": 60}]))
    assert request.employees[0].weekly_hours == 60


def test_empty_and_duplicate_employees_rejected():
    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(make_payload(employees=[]))
    assert _fields(excinfo) == ["employees"]

    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(make_payload(employees=[{"id": "e1"}, {"id": "e1"}]))
    assert _fields(excinfo) == ["employees[1].id"]


def test_min_hours_must_not_exceed_max():
    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(make_payload(company={"minHoursPerDay": 6, "maxHoursPerDay": 4}))
    assert _fields(excinfo) == ["companyConstraints.minHoursPerDay"]


def test_opening_hours_per_day_objects():
    payload = make_payload(
        company={
            "openingDays": ["monday", "saturday"],
            "openingHours": [
                {"day": "saturday", "hours": ["10:00-14:00", "15:00-18:00"]},
                "08:00-18:00",
            ],
        }
    )
    company = normalize_request(payload).company
    assert company.window(0) == (480, 1080)
    # only the first range of an entry is used
    assert company.window(5) == (600, 840)
    assert company.window(1) is None


def test_daily_opening_and_closing_time():
    payload = make_payload()
    payload["companyConstraints"] = {"dailyOpeningTime": "07:30", "dailyClosingTime": "15:30"}
    company = normalize_request(payload).company
    assert company.window(0) == (450, 930)


def test_inverted_opening_range_rejected():
    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(make_payload(company={"openingHours": ["17:00-09:00"]}))
    assert _fields(excinfo) == ["companyConstraints.openingHours[0]"]


def test_exceptions_parsed_with_kind_default():
    payload = make_payload(
        employees=[
            {
                "id": "e1",
                "exceptions": [
                    {"date": "2025-03-19", "type": "vacation", "reason": "Congés"},
                    {"date": "2025-03-20", "description": "Rendez-vous"},
                ],
            }
        ]
    )
    exceptions = normalize_request(payload).employees[0].exceptions
    assert exceptions[0].kind is ExceptionKind.VACATION
    assert exceptions[0].reason == "Congés"
    assert exceptions[1].kind is ExceptionKind.UNAVAILABLE
    assert exceptions[1].reason == "Rendez-vous"


def test_exception_bad_date_and_kind():
    payload = make_payload(
        employees=[
            {
                "id": "e1",
                "exceptions": [{"date": "19/03/2025", "type": "vacation"}, {"date": "2025-03-19", "type": "party"}],
            }
        ]
    )
    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(payload)
    assert _fields(excinfo) == ["employees[0].exceptions[0].date", "employees[0].exceptions[1].type"]


def test_legacy_field_aliases():
    payload = make_payload(
        employees=[
            {
                "_id": "abc123",
                "contractHoursPerWeek": 28,
                "preferences": {
                    "preferredDays": ["lundi", "mardi"],
                    "allowSplitShifts": True,
                    "maxConsecutiveDays": 4,
                    "preferredHours": ["09:00-13:00"],
                },
            }
        ],
    )
    payload["companyConstraints"] = {"openDays": ["monday"], "openHours": ["10:00-16:00"], "minEmployeesPerSlot": 2}
    request = normalize_request(payload)
    employee = request.employees[0]
    assert employee.id == "abc123"
    assert employee.weekly_hours == 28
    assert employee.preferred_days == (0, 1)
    assert employee.allow_split_shifts
    assert employee.max_consecutive_days == 4
    assert employee.preferred_hours == ((540, 780),)
    assert request.company.opening_days == (0,)
    assert request.company.window(0) == (600, 960)
    assert request.company.min_staff == 2


def test_preference_toggles_and_weights():
    request = normalize_request(
        make_payload(preferences={"favorUniformity": True, "balanceWorkload": 2.5, "favorSplit": False})
    )
    policy = request.policy
    assert policy.uniformity == 1.0
    assert policy.balance == 2.5
    assert policy.employee_preferences == 0.0
    assert policy.split == -1.0
    assert not policy.favors_split

    policy = normalize_request(make_payload(preferences={"favorSplit": True})).policy
    assert policy.split == 1.0
    assert policy.favors_split


def test_negative_preference_weight_rejected():
    with pytest.raises(InputValidationError) as excinfo:
        normalize_request(make_payload(preferences={"favorUniformity": -1}))
    assert _fields(excinfo) == ["preferences.favorUniformity"]


def test_payload_must_be_object():
    with pytest.raises(InputValidationError):
        normalize_request(["not", "an", "object"])
