"""Weekly workforce schedule generation.

Modules:
- models: immutable value types of the pipeline
- config: engine configuration (YAML or JSON)
- errors: input and internal error types
- services: normalization, availability, constraint predicates, scoring
- engine: greedy slot assignment, candidate search, orchestrator
- validator: hard-constraint checks of a generated week
- assembler: stats and camelCase output
- domain: SQLAlchemy store of generated schedules
- io: JSON request/result files and CSV export
- cli: command-line interface entrypoints
"""

from .engine.orchestrator import ScheduleEngine, generate
from .errors import InputValidationError, InternalComputationError

__all__ = [
    "generate",
    "ScheduleEngine",
    "InputValidationError",
    "InternalComputationError",
]
