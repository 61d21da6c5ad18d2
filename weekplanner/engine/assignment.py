"""Greedy slot assignment for one week.

The engine makes one pass per day and never backtracks across employees:
once an employee's slots for a day are placed they stay placed. This keeps
generation linear in roster size; turning it into an exhaustive search makes
it exponential and breaks the latency budget.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from weekplanner.config import EngineConfig
from weekplanner.models import (
    EMPTY_DAY,
    CompanyConstraint,
    DaySchedule,
    EmployeeConstraint,
    ScheduleRequest,
    TimeSlot,
    Violation,
    ViolationKind,
    WeeklySchedule,
    WEEKDAYS,
)
from weekplanner.services.availability import Availability, WeekAvailability
from weekplanner.services.constraints import add_coverage, consecutive_runs, deficit_ranges
from weekplanner.services.timeplan import format_minutes

logger = logging.getLogger(__name__)

# employee id -> weekday index -> active minutes to schedule
WorkPlan = Dict[str, Dict[int, int]]


@dataclass(frozen=True)
class Strategy:
    """Tie-break rules of one candidate schedule."""

    name: str
    descending: bool = False
    latest_start: bool = False
    preference_first: bool = False


STRATEGIES: Tuple[Strategy, ...] = (
    Strategy("balanced"),
    Strategy("preference", preference_first=True),
    Strategy("late", latest_start=True),
    Strategy("descending", descending=True),
)


@dataclass(frozen=True)
class DayLayout:
    """Slot offsets of one working day, relative to its start time."""

    segments: Tuple[Tuple[int, int, bool], ...] = ()

    @property
    def span(self) -> int:
        return self.segments[-1][1] if self.segments else 0

    @property
    def active_minutes(self) -> int:
        return sum(end - start for start, end, is_break in self.segments if not is_break)

    @property
    def active_segments(self) -> List[Tuple[int, int]]:
        return [(start, end) for start, end, is_break in self.segments if not is_break]

    def place(self, start: int) -> Tuple[TimeSlot, ...]:
        return tuple(TimeSlot(start + a, start + b, is_break) for a, b, is_break in self.segments)


@dataclass
class AssignmentOutcome:
    strategy: Strategy
    schedule: WeeklySchedule
    notes: List[Violation] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    completed: bool = True


def _select_days(
    employee: EmployeeConstraint,
    days: Sequence[int],
    needed: int,
    headcount: Sequence[int],
    use_preferred_days: bool = True,
) -> List[int]:
    surplus = len(days) - needed
    if surplus <= 0:
        return list(days)
    centre = (len(days) - 1) / 2
    preferred = set(employee.preferred_days) if use_preferred_days else set()

    def drop_rank(item):
        position, day = item
        keep_first = not preferred or day in preferred
        return (keep_first, -headcount[day], abs(position - centre), day)

    dropped = {day for _, day in sorted(enumerate(days), key=drop_rank)[:surplus]}
    return [day for day in days if day not in dropped]


def _limit_consecutive(days: Sequence[int], limit: int, headcount: Sequence[int]) -> List[int]:
    days = list(days)
    while True:
        run = next((r for r in consecutive_runs(days) if len(r) > limit), None)
        if run is None:
            return days
        centre = (len(run) - 1) / 2
        _, drop = min(
            enumerate(run),
            key=lambda item: (-headcount[item[1]], abs(item[0] - centre), item[1]),
        )
        days.remove(drop)


def _spread_minutes(
    target: int,
    days: Sequence[int],
    caps: Dict[int, int],
    min_day: int,
    step: int,
) -> Dict[int, int]:
    if not days:
        return {}
    base = (target // len(days)) // step * step
    alloc = {day: min(caps[day], max(base, min_day)) for day in days}
    remaining = target - sum(alloc.values())
    while remaining > 0:
        grown = False
        for day in days:
            room = caps[day] - alloc[day]
            if room <= 0 or remaining <= 0:
                continue
            increment = min(step, room, remaining)
            alloc[day] += increment
            remaining -= increment
            grown = True
        if not grown:
            break
    return alloc


def _plan_employee(
    employee: EmployeeConstraint,
    week: WeekAvailability,
    headcount: Sequence[int],
    company: CompanyConstraint,
    step: int,
    use_preferred_days: bool = True,
) -> Dict[int, int]:
    min_day = company.min_day_minutes
    caps = {
        day: min(company.max_day_minutes, week[day].minutes)
        for day in range(7)
        if week[day].minutes > 0
    }
    if not caps:
        return {}
    # Days too short for the daily minimum are only used when nothing else is.
    eligible = {day: cap for day, cap in caps.items() if cap >= min_day} or caps

    target = employee.weekly_minutes
    needed = max(1, math.ceil(target / max(eligible.values())))
    if min_day > 0:
        needed = min(needed, max(1, target // min_day))
    needed = min(needed, len(eligible))

    days = _select_days(employee, sorted(eligible), needed, headcount, use_preferred_days)
    days = _limit_consecutive(days, employee.max_consecutive_days, headcount)
    return _spread_minutes(target, days, eligible, min_day, step)


def plan_work_days(
    request: ScheduleRequest,
    availability: Dict[str, WeekAvailability],
    config: EngineConfig | None = None,
) -> WorkPlan:
    """Decide on which days each employee works and for how many minutes.

    Employees are planned in input order. When an employee has more
    available days than needed, the days dropped first are the ones outside
    their preferred days (only when the policy prioritizes employee
    preferences), then the days already staffed by the most planned
    employees, then the days closest to the middle of their available span.
    """
    cfg = config or EngineConfig()
    headcount = [0] * 7
    plan: WorkPlan = {}
    for employee in request.employees:
        days = _plan_employee(
            employee,
            availability[employee.id],
            headcount,
            request.company,
            cfg.search.start_step_minutes,
            request.policy.prioritizes_employee_preferences,
        )
        for day in days:
            headcount[day] += 1
        plan[employee.id] = days
    return plan


def _layout(work: int, split: bool, lunch: int, block: int, gap: int) -> DayLayout:
    if split and work > block:
        sizes = [block] * (work // block)
        if work % block:
            sizes.append(work % block)
    elif lunch:
        first = work // 2
        sizes = [first, work - first]
    else:
        sizes = [work]

    lunch_after = -1
    if lunch and len(sizes) > 1:
        done = 0
        best = None
        for index, size in enumerate(sizes[:-1]):
            done += size
            distance = abs(done - work / 2)
            if best is None or distance < best:
                best, lunch_after = distance, index

    segments = []
    cursor = 0
    for index, size in enumerate(sizes):
        segments.append((cursor, cursor + size, False))
        cursor += size
        if index == len(sizes) - 1:
            break
        if index == lunch_after:
            segments.append((cursor, cursor + lunch, True))
            cursor += lunch
        else:
            cursor += gap
    return DayLayout(tuple(segments))


def build_layout(
    work: int,
    window_minutes: int,
    split: bool,
    company: CompanyConstraint,
    config: EngineConfig,
) -> DayLayout:
    """Lay out ``work`` active minutes inside a window of ``window_minutes``.

    A mandatory lunch break is inserted at the midpoint of the work once the
    active minutes exceed the break threshold, turning one block into two.
    It is never dropped to make the day fit: the active minutes shrink
    instead.
    """
    threshold = config.lunch_break_threshold_minutes
    lunch = company.lunch_break_minutes if company.mandatory_lunch_break else 0
    block = int(round(config.search.max_block_hours * 60))
    gap = config.search.split_gap_minutes

    work = min(work, window_minutes)
    while work > 0:
        layout = _layout(work, split, lunch if work > threshold else 0, block, gap)
        if layout.span <= window_minutes:
            return layout
        work -= layout.span - window_minutes
    return DayLayout()


# Sort keys pack three criteria, each below one day of minutes, into one integer.
_RADIX = 2048

# (work, available start, available end, window start, split, preferred hours)
OptionKey = Tuple[int, int, int, int, bool, Tuple[Tuple[int, int], ...]]


def _best_index(primary, secondary, size: int, latest: bool) -> int:
    # Ties on both criteria go to the start closest to the anchor.
    closeness = np.arange(size) if latest else np.arange(size - 1, -1, -1)
    return int(np.argmax((primary * _RADIX + secondary) * _RADIX + closeness))


@dataclass(eq=False)
class StartOptions:
    """Possible start times of one working day and what each of them matches.

    Nothing here depends on the staff already placed, so one instance is
    shared by every strategy and by every employee-day with the same key.
    """

    layout: DayLayout
    starts: np.ndarray
    seg_lo: np.ndarray
    seg_hi: np.ndarray
    preference: Optional[np.ndarray]
    placed: Dict[int, DaySchedule] = field(default_factory=dict)
    idle: Dict[bool, int] = field(default_factory=dict)

    @property
    def active_minutes(self) -> int:
        return self.layout.active_minutes

    def place(self, start: int) -> DaySchedule:
        day = self.placed.get(start)
        if day is None:
            day = self.placed[start] = DaySchedule(self.layout.place(start))
        return day

    def idle_start(self, latest: bool, use_preferences: bool) -> int:
        """Best start once no staffing deficit is left to close."""
        if not use_preferences or self.preference is None:
            return int(self.starts[-1] if latest else self.starts[0])
        if latest not in self.idle:
            index = _best_index(self.preference, 0, self.starts.size, latest)
            self.idle[latest] = int(self.starts[index])
        return self.idle[latest]


def start_options(
    layout: DayLayout,
    availability: Availability,
    window_start: int,
    preferred_hours: Sequence[Tuple[int, int]],
    step: int,
) -> StartOptions:
    """Starts on a ``step`` grid from the earliest to the latest possible one.

    The latest start is always included even when off the grid. For every
    start, ``seg_lo``/``seg_hi`` hold the window offsets of each active
    segment and ``preference`` the most minutes matched in any one preferred
    window.
    """
    lo = availability.start
    hi = availability.end - layout.span
    starts = np.arange(lo, hi + 1, step, dtype=np.int64)
    if starts.size == 0 or starts[-1] != hi:
        starts = np.append(starts, hi)

    segments = np.array(layout.active_segments, dtype=np.int64)
    seg_lo = starts[None, :] - window_start + segments[:, :1]
    seg_hi = starts[None, :] - window_start + segments[:, 1:]

    preference = None
    if preferred_hours:
        wanted = np.array(preferred_hours, dtype=np.int64)
        begin = np.maximum(starts[:, None, None] + segments[None, :, 0, None], wanted[:, 0])
        end = np.minimum(starts[:, None, None] + segments[None, :, 1, None], wanted[:, 1])
        preference = np.clip(end - begin, 0, None).sum(axis=1).max(axis=1)
    return StartOptions(layout, starts, seg_lo, seg_hi, preference)


def _shortage_prefix(coverage: np.ndarray, min_staff: int) -> Optional[np.ndarray]:
    """Running count of understaffed minutes, or None when there are none."""
    short = coverage < min_staff
    if not short.any():
        return None
    prefix = np.zeros(short.size + 1, dtype=np.int64)
    np.cumsum(short, dtype=np.int64, out=prefix[1:])
    return prefix


def _choose_start(
    options: StartOptions,
    shortage: Optional[np.ndarray],
    strategy: Strategy,
    use_preferences: bool,
) -> int:
    latest = strategy.latest_start
    if shortage is not None:
        gain = (shortage[options.seg_hi] - shortage[options.seg_lo]).sum(axis=0)
        if gain.any():
            preference = options.preference if use_preferences and options.preference is not None else 0
            if strategy.preference_first:
                index = _best_index(preference, gain, options.starts.size, latest)
            else:
                index = _best_index(gain, preference, options.starts.size, latest)
            return int(options.starts[index])
    return options.idle_start(latest, use_preferences)


def _ordered(
    employees: Iterable[EmployeeConstraint],
    allocated: Dict[str, int],
    descending: bool,
) -> List[EmployeeConstraint]:
    sign = -1 if descending else 1
    indexed = sorted(enumerate(employees), key=lambda item: (sign * allocated[item[1].id], item[0]))
    return [employee for _, employee in indexed]


def assign_week(
    request: ScheduleRequest,
    availability: Dict[str, WeekAvailability],
    strategy: Strategy = STRATEGIES[0],
    config: EngineConfig | None = None,
    plan: Optional[WorkPlan] = None,
    budget=None,
    options: Optional[Dict[OptionKey, Optional[StartOptions]]] = None,
) -> AssignmentOutcome:
    """Build one candidate week with ``strategy``.

    Days are processed Monday to Sunday. Within a day, employees are taken
    by allocated minutes so far (ascending, or descending for the
    ``descending`` strategy), ties by input order, and each one gets the
    start time that closes the most staffing deficit, then matches their
    preferred hours, then sits closest to the strategy's anchor.

    ``budget`` is only consulted between days. When it runs out the outcome
    is returned with ``completed=False``. ``options`` caches start options
    across calls made with the same request, availability and plan.
    """
    cfg = config or EngineConfig()
    if plan is None:
        plan = plan_work_days(request, availability, cfg)
    if options is None:
        options = {}
    company = request.company
    min_staff = company.min_staff
    step = cfg.search.start_step_minutes
    use_preferences = strategy.preference_first or request.policy.prioritizes_employee_preferences
    split_enabled = request.policy.favors_split

    days: Dict[str, List[DaySchedule]] = {emp.id: [EMPTY_DAY] * 7 for emp in request.employees}
    allocated = {emp.id: 0 for emp in request.employees}
    notes: List[Violation] = []

    for day in range(7):
        if day and budget is not None and budget.exhausted():
            logger.debug("Strategy %s stopped before %s: budget exhausted", strategy.name, WEEKDAYS[day])
            return AssignmentOutcome(strategy, WeeklySchedule.from_days(days), notes, completed=False)
        window = company.window(day)
        if window is None:
            continue
        size = window[1] - window[0]
        coverage = np.zeros(size, dtype=np.int32)
        shortage = np.arange(size + 1, dtype=np.int64) if min_staff > 0 and size > 0 else None

        for employee in _ordered(request.employees, allocated, strategy.descending):
            work = plan.get(employee.id, {}).get(day, 0)
            if work <= 0:
                continue
            avail = availability[employee.id][day]
            split = split_enabled and employee.allow_split_shifts
            key = (work, avail.start, avail.end, window[0], split, employee.preferred_hours)
            if key not in options:
                layout = build_layout(work, avail.minutes, split, company, cfg)
                options[key] = (
                    start_options(layout, avail, window[0], employee.preferred_hours, step)
                    if layout.segments
                    else None
                )
            choice = options[key]
            if choice is None:
                continue
            start = _choose_start(choice, shortage, strategy, use_preferences)
            placed = choice.place(start)
            days[employee.id][day] = placed
            add_coverage(coverage, window[0], placed.active_slots)
            allocated[employee.id] += choice.active_minutes
            if shortage is not None:
                shortage = _shortage_prefix(coverage, min_staff)

        for lo, hi, lowest in deficit_ranges(coverage, window[0], company.min_staff):
            notes.append(
                Violation(
                    ViolationKind.STAFFING_DEFICIT,
                    day,
                    f"{lowest} of {company.min_staff} required staff "
                    f"between {format_minutes(lo)} and {format_minutes(hi)}",
                    start=lo,
                    end=hi,
                )
            )

    warnings = []
    for employee in request.employees:
        scheduled = allocated[employee.id]
        if scheduled < employee.weekly_minutes:
            warnings.append(
                f"Employee {employee.id}: {scheduled / 60:.2f}h scheduled "
                f"of {employee.weekly_hours:g}h contracted"
            )
    logger.debug("Strategy %s placed %d minutes", strategy.name, sum(allocated.values()))
    return AssignmentOutcome(strategy, WeeklySchedule.from_days(days), notes, warnings)
