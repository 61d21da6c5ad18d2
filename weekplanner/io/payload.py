"""JSON request and result files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict


def load_request(path: str | Path) -> Dict[str, Any]:
    """Read a camelCase request object from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object at top level")
    return data


def load_result(path: str | Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or "schedule" not in data:
        raise ValueError(f"{path}: not a schedule result")
    return data


def write_result(path: str | Path, result: Dict[str, Any]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, ensure_ascii=False)
        f.write("\n")
