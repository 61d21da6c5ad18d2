"""Orchestrator - runs the generation pipeline for one team-week."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict

from weekplanner.assembler import assemble_result, result_to_payload
from weekplanner.config import EngineConfig
from weekplanner.models import GenerationResult
from weekplanner.services.availability import compute_availability
from weekplanner.services.normalizer import normalize_request
from weekplanner.validator import raise_on_internal_faults, validate_schedule

from .optimizer import Clock, optimize

logger = logging.getLogger(__name__)


class ScheduleEngine:
    """
    Runs normalization, availability, assignment, optimization, validation
    and assembly strictly in that order.

    The engine holds no state between calls; one instance may serve any
    number of requests.
    """

    def __init__(self, config: EngineConfig | None = None, clock: Clock = time.perf_counter):
        """
        Args:
            config: Engine configuration (defaults when None)
            clock: Monotonic clock in seconds, used for the time budget and timing
        """
        self.config = config or EngineConfig()
        self.clock = clock

    def generate(self, payload: Any) -> GenerationResult:
        """
        Generate the schedule of one team-week.

        Raises:
            InputValidationError: payload is malformed
            InternalComputationError: the engine produced a schedule breaking a rule it enforces
        """
        started = self.clock()
        request = normalize_request(payload, self.config)
        logger.info(
            "Generating week %d/%d for team %s (%d employees)",
            request.week_number,
            request.year,
            request.team_id,
            len(request.employees),
        )

        availability = compute_availability(request, self.config)
        outcome = optimize(request, availability, self.config, clock=self.clock)
        violations = validate_schedule(request, availability, outcome.best.schedule, self.config)
        raise_on_internal_faults(violations)

        elapsed_ms = (self.clock() - started) * 1000.0
        result = assemble_result(request, outcome, violations, elapsed_ms)
        logger.info(
            "Week %d/%d for team %s: strategy=%s feasible=%s violations=%d in %.1f ms",
            request.week_number,
            request.year,
            request.team_id,
            result.strategy,
            result.feasible,
            len(result.violations),
            elapsed_ms,
        )
        return result


def generate(payload: Any, config: EngineConfig | None = None) -> Dict[str, Any]:
    """
    Convenience function: generate a week and return the output object.

    Args:
        payload: camelCase request object
        config: Optional EngineConfig

    Returns:
        camelCase result dictionary
    """
    return result_to_payload(ScheduleEngine(config).generate(payload))
