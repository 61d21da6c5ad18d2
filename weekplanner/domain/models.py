"""SQLAlchemy models for generated weekly schedules."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, relationship

STATUS_DRAFT = "draft"
STATUS_APPROVED = "approved"


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class GeneratedSchedule(Base):
    """One generation run for a team-week, with its full result payload."""

    __tablename__ = "generated_schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(String(64), nullable=False, index=True)
    week_number = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    strategy = Column(String(32), nullable=False)
    feasible = Column(Boolean, nullable=False)
    violation_count = Column(Integer, nullable=False, default=0)
    total_hours = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), nullable=False, default=STATUS_DRAFT)  # draft, approved
    generated_by = Column(String(64), nullable=False, default="AI")
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    employee_schedules = relationship(
        "EmployeeSchedule",
        back_populates="generated_schedule",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return (
            f"<GeneratedSchedule(id={self.id}, team='{self.team_id}', "
            f"week={self.year}-W{self.week_number:02d}, status='{self.status}')>"
        )


class EmployeeSchedule(Base):
    """Slots of one employee for the week: weekday -> ["HH:MM-HH:MM", ...]."""

    __tablename__ = "employee_schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    generated_schedule_id = Column(Integer, ForeignKey("generated_schedules.id"), nullable=False)
    employee_id = Column(String(64), nullable=False, index=True)
    schedule_data = Column(JSON, nullable=False)
    scheduled_hours = Column(Float, nullable=False, default=0.0)

    # Relationships
    generated_schedule = relationship("GeneratedSchedule", back_populates="employee_schedules")

    def __repr__(self) -> str:
        return f"<EmployeeSchedule(id={self.id}, emp='{self.employee_id}', hours={self.scheduled_hours})>"
