"""Value types shared by every stage of the generation pipeline.

All types are frozen dataclasses: a stage never edits the output of the
previous one, it builds a new value. Times of day are integer minutes since
midnight; weekdays are indices 0 (Monday) to 6 (Sunday).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from datetime import date
from enum import Enum
from types import MappingProxyType
from typing import ClassVar, Dict, FrozenSet, Iterator, List, Mapping, Optional, Sequence, Tuple

WEEKDAYS: Tuple[str, ...] = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

Window = Tuple[int, int]


class ExceptionKind(str, Enum):
    UNAVAILABLE = "unavailable"
    REDUCED = "reduced"
    TRAINING = "training"
    SICK = "sick"
    VACATION = "vacation"


# Every kind except REDUCED removes the whole day.
BLOCKING_KINDS: FrozenSet[ExceptionKind] = frozenset(
    {ExceptionKind.UNAVAILABLE, ExceptionKind.TRAINING, ExceptionKind.SICK, ExceptionKind.VACATION}
)


class ViolationKind(str, Enum):
    OVERLAP = "OVERLAP"
    OUTSIDE_OPENING_HOURS = "OUTSIDE_OPENING_HOURS"
    DAILY_HOURS_EXCEEDED = "DAILY_HOURS_EXCEEDED"
    DAILY_HOURS_BELOW_MINIMUM = "DAILY_HOURS_BELOW_MINIMUM"
    REST_DAY = "REST_DAY"
    EXCEPTION = "EXCEPTION"
    LUNCH_BREAK = "LUNCH_BREAK"
    STAFFING_DEFICIT = "STAFFING_DEFICIT"
    CONSECUTIVE_DAYS = "CONSECUTIVE_DAYS"
    NO_AVAILABILITY = "NO_AVAILABILITY"


@dataclass(frozen=True)
class ScheduleException:
    """A dated override of an employee's availability."""

    date: date
    kind: ExceptionKind
    reason: str = ""

    @property
    def is_blocking(self) -> bool:
        return self.kind in BLOCKING_KINDS


@dataclass(frozen=True)
class EmployeeConstraint:
    """Per-employee input, read-only for one invocation."""

    id: str
    name: str = ""
    email: str = ""
    weekly_hours: float = 35.0
    rest_day: Optional[int] = None
    preferred_hours: Tuple[Window, ...] = ()
    exceptions: Tuple[ScheduleException, ...] = ()
    allow_split_shifts: bool = False
    preferred_days: Tuple[int, ...] = ()
    max_consecutive_days: int = 5

    @property
    def weekly_minutes(self) -> int:
        return int(round(self.weekly_hours * 60))

    def exceptions_on(self, day: date) -> List[ScheduleException]:
        return [exc for exc in self.exceptions if exc.date == day]


@dataclass(frozen=True)
class CompanyConstraint:
    """Operating rules of the company for the target week."""

    opening_windows: Tuple[Optional[Window], ...]
    min_staff: int = 1
    min_hours_per_day: float = 2.0
    max_hours_per_day: float = 8.0
    mandatory_lunch_break: bool = False
    lunch_break_minutes: int = 60

    def window(self, day: int) -> Optional[Window]:
        return self.opening_windows[day]

    @property
    def opening_days(self) -> Tuple[int, ...]:
        return tuple(d for d in range(7) if self.opening_windows[d] is not None)

    @property
    def min_day_minutes(self) -> int:
        return int(round(self.min_hours_per_day * 60))

    @property
    def max_day_minutes(self) -> int:
        return int(round(self.max_hours_per_day * 60))


@dataclass(frozen=True)
class PreferencePolicy:
    """Named weights of the soft preferences.

    ``split`` is signed: positive rewards split shifts, negative penalizes
    them. The other weights are non-negative.
    """

    split: float = 0.0
    uniformity: float = 0.0
    balance: float = 0.0
    employee_preferences: float = 0.0

    TERM_NAMES: ClassVar[Tuple[str, ...]] = ("split", "uniformity", "balance", "employee_preferences")

    def terms(self) -> Tuple[Tuple[str, float], ...]:
        return tuple((name, getattr(self, name)) for name in self.TERM_NAMES)

    @property
    def favors_split(self) -> bool:
        return self.split > 0

    @property
    def prioritizes_employee_preferences(self) -> bool:
        return self.employee_preferences > 0


@dataclass(frozen=True)
class TimeSlot:
    start: int
    end: int
    is_break: bool = False

    @property
    def minutes(self) -> int:
        return self.end - self.start

    @property
    def duration(self) -> float:
        """Duration in hours."""
        return self.minutes / 60.0


@dataclass(frozen=True)
class DaySchedule:
    """Slots of one employee on one day, ordered by start time."""

    slots: Tuple[TimeSlot, ...] = ()

    # Cached on the instance; slots never change after construction.
    @cached_property
    def active_slots(self) -> Tuple[TimeSlot, ...]:
        return tuple(s for s in self.slots if not s.is_break)

    @cached_property
    def active_minutes(self) -> int:
        return sum(s.minutes for s in self.active_slots)

    @property
    def is_working(self) -> bool:
        return bool(self.active_slots)

    @property
    def first_start(self) -> Optional[int]:
        active = self.active_slots
        return active[0].start if active else None

    @property
    def last_end(self) -> Optional[int]:
        active = self.active_slots
        return active[-1].end if active else None

    def active_runs(self) -> List[Window]:
        """Continuous stretches of active time, adjacent slots merged."""
        runs: List[List[int]] = []
        for slot in self.active_slots:
            if runs and runs[-1][1] == slot.start:
                runs[-1][1] = slot.end
            else:
                runs.append([slot.start, slot.end])
        return [(start, end) for start, end in runs]

    @property
    def is_split(self) -> bool:
        """Work interrupted by something other than a break slot."""
        active = self.active_slots
        if len(active) < 2:
            return False
        breaks = [s for s in self.slots if s.is_break]
        return len(self.active_runs()) > len(breaks) + 1


EMPTY_DAY = DaySchedule()


@dataclass(frozen=True)
class WeeklySchedule:
    """Employee id -> the seven DaySchedules of the week, Monday first."""

    days: Mapping[str, Tuple[DaySchedule, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for employee_id, week in self.days.items():
            if len(week) != 7:
                raise ValueError(f"Employee {employee_id} has {len(week)} days, expected 7")
        object.__setattr__(self, "days", MappingProxyType(dict(self.days)))

    @classmethod
    def from_days(cls, days: Mapping[str, Sequence[DaySchedule]]) -> "WeeklySchedule":
        return cls({emp_id: tuple(week) for emp_id, week in days.items()})

    @property
    def employee_ids(self) -> Tuple[str, ...]:
        return tuple(self.days.keys())

    def week_of(self, employee_id: str) -> Tuple[DaySchedule, ...]:
        return self.days[employee_id]

    def day(self, employee_id: str, day: int) -> DaySchedule:
        return self.days[employee_id][day]

    def with_day(self, employee_id: str, day: int, schedule: DaySchedule) -> "WeeklySchedule":
        week = list(self.days[employee_id])
        week[day] = schedule
        updated = dict(self.days)
        updated[employee_id] = tuple(week)
        return WeeklySchedule(updated)

    def active_minutes(self, employee_id: str) -> int:
        return sum(day.active_minutes for day in self.days[employee_id])

    def iter_days(self) -> Iterator[Tuple[str, int, DaySchedule]]:
        for employee_id, week in self.days.items():
            for index, day in enumerate(week):
                yield employee_id, index, day


@dataclass(frozen=True)
class ScheduleRequest:
    """Normalized input of one generation."""

    team_id: str
    week_number: int
    year: int
    week_dates: Tuple[date, ...]
    employees: Tuple[EmployeeConstraint, ...]
    company: CompanyConstraint
    policy: PreferencePolicy


@dataclass(frozen=True)
class Violation:
    kind: ViolationKind
    day: Optional[int]
    message: str
    employee_id: Optional[str] = None
    start: Optional[int] = None
    end: Optional[int] = None


@dataclass(frozen=True)
class GenerationResult:
    request: ScheduleRequest
    schedule: WeeklySchedule
    violations: Tuple[Violation, ...]
    stats: Dict[str, float]
    execution_time_ms: float
    strategy: str
    score: float
    candidates_evaluated: int
    warnings: Tuple[str, ...] = ()

    @property
    def feasible(self) -> bool:
        return not self.violations
