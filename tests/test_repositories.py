"""Tests for the generated schedule store."""

import pytest

from conftest import make_payload
from weekplanner import generate
from weekplanner.domain.db import get_session
from weekplanner.domain.models import STATUS_APPROVED, STATUS_DRAFT, EmployeeSchedule, GeneratedSchedule
from weekplanner.domain.repositories import GeneratedScheduleRepository


@pytest.fixture
def result():
    payload = make_payload(
        employees=[{"id": "e1", "weeklyHours": 32}, {"id": "e2", "weeklyHours": 24}],
        company={"mandatoryLunchBreak": True, "openingHours": ["08:00-18:00"]},
    )
    return generate(payload)


def test_save_result(db_session, result):
    record = GeneratedScheduleRepository.save_result(db_session, result)
    assert record.id is not None
    assert record.team_id == "team-1"
    assert (record.week_number, record.year) == (12, 2025)
    assert record.status == STATUS_DRAFT
    assert record.generated_by == "AI"
    assert record.feasible == result["feasible"]
    assert record.violation_count == len(result["violations"])
    assert record.payload["schedule"] == result["schedule"]

    rows = {row.employee_id: row for row in record.employee_schedules}
    assert set(rows) == {"e1", "e2"}
    assert rows["e1"].scheduled_hours == 32.0
    # lunch breaks are not stored as worked ranges
    for ranges in rows["e1"].schedule_data.values():
        assert all("-" in r for r in ranges)
    assert sum(len(r) for r in rows["e1"].schedule_data.values()) == sum(
        1 for slots in result["schedule"]["e1"].values() for s in slots if not s["isLunchBreak"]
    )


def test_get_latest_and_list_for_team(db_session, result):
    first = GeneratedScheduleRepository.save_result(db_session, result)
    second = GeneratedScheduleRepository.save_result(db_session, result)
    latest = GeneratedScheduleRepository.get_latest(db_session, "team-1", 12, 2025)
    assert latest.id == second.id != first.id
    assert GeneratedScheduleRepository.get_latest(db_session, "team-1", 13, 2025) is None
    assert [r.id for r in GeneratedScheduleRepository.list_for_team(db_session, "team-1")] == [first.id, second.id]
    assert GeneratedScheduleRepository.list_for_team(db_session, "other") == []


def test_approve(db_session, result):
    record = GeneratedScheduleRepository.save_result(db_session, result)
    approved = GeneratedScheduleRepository.approve(db_session, record.id)
    assert approved.status == STATUS_APPROVED
    with pytest.raises(LookupError):
        GeneratedScheduleRepository.approve(db_session, 9999)


def test_delete_for_week_cascades(db_session, result):
    GeneratedScheduleRepository.save_result(db_session, result)
    GeneratedScheduleRepository.save_result(db_session, result)
    assert GeneratedScheduleRepository.delete_for_week(db_session, "team-1", 12, 2025) == 2
    assert db_session.query(GeneratedSchedule).count() == 0
    assert db_session.query(EmployeeSchedule).count() == 0


@pytest.mark.integration
def test_get_session_creates_tables(tmp_path, result):
    db_url = f"sqlite:///{tmp_path / 'weekplanner.db'}"
    session = get_session(db_url)
    try:
        GeneratedScheduleRepository.save_result(session, result)
        assert session.query(GeneratedSchedule).count() == 1
    finally:
        session.close()
