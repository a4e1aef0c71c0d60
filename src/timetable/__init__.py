"""Timetable colour-group service.

Turns a pre-read spreadsheet grid (cell text plus background/foreground
colours) into per-class, per-period slot lists and keeps the latest snapshot
in a memory, file or Redis store.
"""

from src.timetable.extraction import extract_timetable
from src.timetable.models import (
    CellRow,
    ColorGroupKey,
    SlotEntry,
    TimetableGroup,
    TimetableSnapshot,
)
from src.timetable.service import TimetableService
from src.timetable.store import create_store

__all__ = [
    "extract_timetable",
    "CellRow",
    "ColorGroupKey",
    "SlotEntry",
    "TimetableGroup",
    "TimetableSnapshot",
    "TimetableService",
    "create_store",
]
