"""Candidate search over the fixed assignment strategies.

The search is bounded by ``max_candidates``, so the same request always
scores the same candidates. A wall-clock ``time_budget_ms`` can be set as
a safety cap on top; once it trips, the chosen candidate depends on machine
speed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from weekplanner.config import EngineConfig
from weekplanner.models import ScheduleRequest
from weekplanner.services.availability import WeekAvailability
from weekplanner.services.scoring import score_schedule

from .assignment import STRATEGIES, AssignmentOutcome, assign_week, plan_work_days

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class Budget:
    """Optional wall-clock deadline, checked only at coarse checkpoints.

    Without ``time_budget_ms`` it never runs out.
    """

    def __init__(self, time_budget_ms: Optional[float] = None, clock: Clock = time.perf_counter):
        self.clock = clock
        self.deadline = None if time_budget_ms is None else clock() + time_budget_ms / 1000.0

    def exhausted(self) -> bool:
        return self.deadline is not None and self.clock() >= self.deadline


@dataclass
class OptimizationOutcome:
    best: AssignmentOutcome
    score: float
    terms: Dict[str, float] = field(default_factory=dict)
    evaluated: int = 1


def optimize(
    request: ScheduleRequest,
    availability: Dict[str, WeekAvailability],
    config: EngineConfig | None = None,
    clock: Clock = time.perf_counter,
    time_budget_ms: Optional[float] = None,
    max_candidates: Optional[int] = None,
) -> OptimizationOutcome:
    """Build and score candidates, keeping the best one.

    The first ``max_candidates`` strategies are tried in order. The first
    candidate always runs to completion. When a time budget is set, later
    candidates are started only while it lasts and are dropped if it runs
    out mid-week. Ties keep the earlier candidate.
    """
    cfg = config or EngineConfig()
    budget = Budget(time_budget_ms if time_budget_ms is not None else cfg.search.time_budget_ms, clock)
    limit = max_candidates if max_candidates is not None else cfg.search.max_candidates
    plan = plan_work_days(request, availability, cfg)
    options: Dict = {}

    result: Optional[OptimizationOutcome] = None
    for index, strategy in enumerate(STRATEGIES[: max(1, limit)]):
        if index and budget.exhausted():
            logger.info("Time budget exhausted after %d candidate(s)", index)
            break
        outcome = assign_week(
            request,
            availability,
            strategy,
            cfg,
            plan=plan,
            budget=budget if index else None,
            options=options,
        )
        if not outcome.completed:
            logger.info("Candidate %s abandoned: time budget exhausted", strategy.name)
            break
        score, terms = score_schedule(request, outcome.schedule)
        logger.debug("Candidate %s scored %.4f %s", strategy.name, score, terms)
        if result is None:
            result = OptimizationOutcome(outcome, score, terms)
        else:
            result.evaluated += 1
            if score > result.score:
                result.best, result.score, result.terms = outcome, score, terms
    return result
