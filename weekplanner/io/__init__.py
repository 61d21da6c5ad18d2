"""I/O utilities for JSON payloads and CSV export."""

from .export_csv import export_slots_csv, read_slots_csv, slots_frame, summarize_slots
from .payload import load_request, load_result, write_result

__all__ = [
    "export_slots_csv",
    "read_slots_csv",
    "slots_frame",
    "summarize_slots",
    "load_request",
    "load_result",
    "write_result",
]
