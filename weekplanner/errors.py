"""Errors raised by the generation pipeline.

Infeasibility is not an error: it is reported as violations on a result.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence


class InputValidationError(ValueError):
    """Malformed or out-of-range request payload.

    ``issues`` is a list of ``{"field": ..., "message": ...}`` dicts, one per
    problem found, in the order they were detected.
    """

    def __init__(self, issues: Iterable[Dict[str, str]]):
        self.issues: List[Dict[str, str]] = list(issues)
        summary = "; ".join(
            f"{issue['field']}: {issue['message']}" if issue["field"] else issue["message"]
            for issue in self.issues
        )
        super().__init__(f"Invalid schedule request: {summary}")


class InternalComputationError(RuntimeError):
    """The engine produced a schedule breaking a rule it is built to honor."""

    def __init__(self, message: str, violations: Sequence = ()):
        self.violations = tuple(violations)
        super().__init__(message)
