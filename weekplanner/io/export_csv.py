"""CSV export of generated slots."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pandas as pd

from weekplanner.models import WEEKDAYS
from weekplanner.services.timeplan import week_dates

SLOT_COLUMNS = ["employee_id", "day", "date", "start", "end", "hours", "is_lunch_break"]


def slots_frame(result: Dict[str, Any]) -> pd.DataFrame:
    """
    One row per slot of a result object.

    Args:
        result: result object as returned by ``weekplanner.generate``

    Returns:
        DataFrame with SLOT_COLUMNS, ordered by employee, day and start
    """
    dates = week_dates(result["year"], result["weekNumber"])
    rows = []
    for employee_id, week in result["schedule"].items():
        for index, day in enumerate(WEEKDAYS):
            for slot in week.get(day, []):
                rows.append(
                    {
                        "employee_id": employee_id,
                        "day": day,
                        "date": dates[index].isoformat(),
                        "start": slot["start"],
                        "end": slot["end"],
                        "is_lunch_break": bool(slot.get("isLunchBreak", False)),
                    }
                )
    df = pd.DataFrame(rows, columns=[c for c in SLOT_COLUMNS if c != "hours"])
    if df.empty:
        return pd.DataFrame(columns=SLOT_COLUMNS)
    start = pd.to_timedelta(df["start"] + ":00")
    end = pd.to_timedelta(df["end"] + ":00")
    df["hours"] = ((end - start).dt.total_seconds() / 3600.0).round(2)
    return df[SLOT_COLUMNS].sort_values(["employee_id", "date", "start"], kind="stable").reset_index(drop=True)


def export_slots_csv(result: Dict[str, Any], csv_path: str | Path) -> int:
    """
    Export the slots of a result to CSV.

    Returns:
        Number of slots exported
    """
    df = slots_frame(result)
    df.to_csv(csv_path, index=False)
    return len(df)


def read_slots_csv(csv_path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(csv_path, dtype={"employee_id": str})
    df.columns = df.columns.str.lower().str.strip()
    return df


def summarize_slots(df: pd.DataFrame) -> pd.DataFrame:
    """Worked hours, working days and lunch breaks per employee."""
    if df.empty:
        return pd.DataFrame(columns=["employee_id", "hours", "days", "lunch_breaks"])
    work = df[~df["is_lunch_break"].astype(bool)]
    summary = (
        work.groupby("employee_id")
        .agg(hours=("hours", "sum"), days=("date", "nunique"))
        .reindex(sorted(df["employee_id"].unique()), fill_value=0)
    )
    breaks = df[df["is_lunch_break"].astype(bool)].groupby("employee_id").size()
    summary["lunch_breaks"] = breaks.reindex(summary.index, fill_value=0).astype(int)
    summary["hours"] = summary["hours"].round(2)
    return summary.rename_axis("employee_id").reset_index()


def has_overlap(df: pd.DataFrame) -> bool:
    """True when two slots of one employee on one date intersect."""
    if df.empty:
        return False
    ordered = df.assign(
        start_td=pd.to_timedelta(df["start"] + ":00"),
        end_td=pd.to_timedelta(df["end"] + ":00"),
    ).sort_values(["employee_id", "date", "start_td"])
    previous_end = ordered.groupby(["employee_id", "date"])["end_td"].shift()
    return bool((ordered["start_td"] < previous_end).fillna(False).any())
