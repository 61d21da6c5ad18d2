"""Engine configuration: defaults for unset request fields and search limits.

Loaded from YAML or JSON; every key is optional and unknown keys are rejected.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml


@dataclass
class DefaultsConfig:
    opening_days: List[str] = field(
        default_factory=lambda: ["monday", "tuesday", "wednesday", "thursday", "friday"]
    )
    opening_time: str = "09:00"
    closing_time: str = "17:00"
    min_staff: int = 1
    min_hours_per_day: float = 2.0
    max_hours_per_day: float = 8.0
    weekly_hours: float = 35.0
    lunch_break_minutes: int = 60
    lunch_break_threshold_hours: float = 6.0
    max_consecutive_days: int = 5
    reduced_ratio: float = 0.5
    preference_weight: float = 1.0


@dataclass
class SearchConfig:
    # Optional wall-clock cap on the search; candidates are bounded by max_candidates.
    time_budget_ms: Optional[float] = None
    max_candidates: int = 4
    start_step_minutes: int = 15
    max_block_hours: float = 4.0
    split_gap_minutes: int = 30


@dataclass
class EngineConfig:
    min_year: int = 2000
    max_year: int = 2100
    max_weekly_hours: float = 60.0
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    search: SearchConfig = field(default_factory=SearchConfig)

    def __post_init__(self) -> None:
        if self.min_year > self.max_year:
            raise ValueError("min_year must not exceed max_year")
        if self.search.start_step_minutes <= 0:
            raise ValueError("search.start_step_minutes must be positive")
        if self.search.max_candidates < 1:
            raise ValueError("search.max_candidates must be at least 1")
        if self.search.time_budget_ms is not None and self.search.time_budget_ms <= 0:
            raise ValueError("search.time_budget_ms must be positive")
        if not 0 < self.defaults.reduced_ratio <= 1:
            raise ValueError("defaults.reduced_ratio must be in (0, 1]")
        if self.defaults.min_hours_per_day > self.defaults.max_hours_per_day:
            raise ValueError("defaults.min_hours_per_day exceeds defaults.max_hours_per_day")

    @property
    def lunch_break_threshold_minutes(self) -> int:
        return int(round(self.defaults.lunch_break_threshold_hours * 60))


def _build(cls, data: Mapping[str, Any], section: str):
    if not isinstance(data, Mapping):
        raise ValueError(f"Config section '{section}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in '{section}': {unknown}")
    return cls(**data)


def config_from_dict(data: Mapping[str, Any] | None) -> EngineConfig:
    data = dict(data or {})
    defaults = _build(DefaultsConfig, data.pop("defaults", {}) or {}, "defaults")
    search = _build(SearchConfig, data.pop("search", {}) or {}, "search")
    unknown = sorted(set(data) - {"min_year", "max_year", "max_weekly_hours"})
    if unknown:
        raise ValueError(f"Unknown config keys: {unknown}")
    return EngineConfig(defaults=defaults, search=search, **data)


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load an EngineConfig from a .yaml/.yml or .json file.

    Args:
        path: Config file path. ``None`` returns the built-in defaults.

    Returns:
        EngineConfig

    Raises:
        ValueError: On unknown keys, unsupported suffix or invalid values.
    """
    if path is None:
        return EngineConfig()
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif path.suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError(f"Unsupported config format: {path.suffix}")
    return config_from_dict(data)
