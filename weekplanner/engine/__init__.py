"""Scheduling engine: greedy slot assignment, candidate search and orchestration."""

from .assignment import STRATEGIES, AssignmentOutcome, Strategy, assign_week, plan_work_days
from .optimizer import Budget, OptimizationOutcome, optimize
from .orchestrator import ScheduleEngine, generate

__all__ = [
    "STRATEGIES",
    "Strategy",
    "AssignmentOutcome",
    "assign_week",
    "plan_work_days",
    "Budget",
    "OptimizationOutcome",
    "optimize",
    "ScheduleEngine",
    "generate",
]
