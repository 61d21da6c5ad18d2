"""Repository classes for data access."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.orm import Session

from weekplanner.services.timeplan import to_minutes

from .models import STATUS_APPROVED, EmployeeSchedule, GeneratedSchedule


def _employee_rows(schedule: Mapping[str, Mapping[str, List[Dict[str, Any]]]]) -> List[EmployeeSchedule]:
    rows = []
    for employee_id, week in schedule.items():
        data = {}
        minutes = 0
        for day, slots in week.items():
            active = [slot for slot in slots if not slot.get("isLunchBreak")]
            if not active:
                continue
            data[day] = [f"{slot['start']}-{slot['end']}" for slot in active]
            minutes += sum(to_minutes(slot["end"]) - to_minutes(slot["start"]) for slot in active)
        rows.append(
            EmployeeSchedule(
                employee_id=employee_id,
                schedule_data=data,
                scheduled_hours=round(minutes / 60.0, 2),
            )
        )
    return rows


class GeneratedScheduleRepository:
    """Repository for generated schedule data access."""

    @staticmethod
    def save_result(session: Session, result: Mapping[str, Any], generated_by: str = "AI") -> GeneratedSchedule:
        """Store a result object as returned by ``weekplanner.generate``."""
        record = GeneratedSchedule(
            team_id=str(result["teamId"]),
            week_number=result["weekNumber"],
            year=result["year"],
            strategy=result.get("strategy", ""),
            feasible=bool(result["feasible"]),
            violation_count=len(result.get("violations", [])),
            total_hours=result.get("stats", {}).get("totalHours", 0.0),
            generated_by=generated_by,
            payload=dict(result),
        )
        record.employee_schedules = _employee_rows(result.get("schedule", {}))
        session.add(record)
        session.commit()
        session.refresh(record)
        return record

    @staticmethod
    def get_latest(session: Session, team_id: str, week_number: int, year: int) -> Optional[GeneratedSchedule]:
        """Most recent generation for a team-week."""
        return (
            session.query(GeneratedSchedule)
            .filter(
                GeneratedSchedule.team_id == team_id,
                GeneratedSchedule.week_number == week_number,
                GeneratedSchedule.year == year,
            )
            .order_by(GeneratedSchedule.created_at.desc(), GeneratedSchedule.id.desc())
            .first()
        )

    @staticmethod
    def list_for_team(session: Session, team_id: str) -> List[GeneratedSchedule]:
        """All generations of a team, by week."""
        return (
            session.query(GeneratedSchedule)
            .filter(GeneratedSchedule.team_id == team_id)
            .order_by(GeneratedSchedule.year, GeneratedSchedule.week_number, GeneratedSchedule.id)
            .all()
        )

    @staticmethod
    def approve(session: Session, schedule_id: int) -> GeneratedSchedule:
        """Mark a generated schedule as approved."""
        record = session.get(GeneratedSchedule, schedule_id)
        if record is None:
            raise LookupError(f"Generated schedule {schedule_id} not found")
        record.status = STATUS_APPROVED
        session.commit()
        return record

    @staticmethod
    def delete_for_week(session: Session, team_id: str, week_number: int, year: int) -> int:
        """Delete all generations for a team-week. Returns number of deleted rows."""
        records = (
            session.query(GeneratedSchedule)
            .filter(
                GeneratedSchedule.team_id == team_id,
                GeneratedSchedule.week_number == week_number,
                GeneratedSchedule.year == year,
            )
            .all()
        )
        for record in records:
            session.delete(record)
        session.commit()
        return len(records)
