"""Storage of generated schedules."""

from .models import Base, EmployeeSchedule, GeneratedSchedule
from .repositories import GeneratedScheduleRepository

__all__ = [
    "Base",
    "GeneratedSchedule",
    "EmployeeSchedule",
    "GeneratedScheduleRepository",
]
