"""Hard-constraint predicates shared by the assignment engine and the validator."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

import numpy as np

from weekplanner.models import DaySchedule, TimeSlot, Window


def overlapping_pairs(slots: Sequence[TimeSlot]) -> List[Tuple[TimeSlot, TimeSlot]]:
    """Pairs of slots that intersect, in start order."""
    ordered = sorted(slots, key=lambda s: (s.start, s.end))
    pairs = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1:]:
            if second.start >= first.end:
                break
            pairs.append((first, second))
    return pairs


def has_overlap(day: DaySchedule) -> bool:
    return bool(overlapping_pairs(day.slots))


def within_window(day: DaySchedule, window: Window) -> bool:
    start, end = window
    return all(start <= slot.start and slot.end <= end for slot in day.slots)


def coverage_for_day(days: Iterable[DaySchedule], window: Window) -> np.ndarray:
    """Per-minute count of employees with an active slot inside ``window``."""
    start, end = window
    coverage = np.zeros(end - start, dtype=np.int32)
    for day in days:
        add_coverage(coverage, start, day.active_slots)
    return coverage


def add_coverage(coverage: np.ndarray, offset: int, slots: Iterable[TimeSlot]) -> None:
    size = len(coverage)
    for slot in slots:
        lo = max(0, slot.start - offset)
        hi = min(size, slot.end - offset)
        if hi > lo:
            coverage[lo:hi] += 1


def deficit_ranges(coverage: np.ndarray, offset: int, min_staff: int) -> List[Tuple[int, int, int]]:
    """Ranges where coverage is below ``min_staff``.

    Returns:
        ``(start, end, lowest_count)`` tuples in minutes since midnight.
    """
    if min_staff <= 0 or len(coverage) == 0:
        return []
    short = coverage < min_staff
    if not short.any():
        return []
    edges = np.diff(np.concatenate(([0], short.astype(np.int8), [0])))
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)
    return [
        (offset + int(s), offset + int(e), int(coverage[s:e].min()))
        for s, e in zip(starts, ends)
    ]


def consecutive_runs(days: Iterable[int]) -> List[List[int]]:
    """Group sorted weekday indices into runs of consecutive days."""
    runs: List[List[int]] = []
    for day in sorted(days):
        if runs and runs[-1][-1] == day - 1:
            runs[-1].append(day)
        else:
            runs.append([day])
    return runs
