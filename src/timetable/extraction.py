"""Colour-group extraction from a pre-read spreadsheet grid.

Grid layout (fixed by the school's timetable template):
  row 2            -> period numbers 1..6 above the first column of each slot
  leading columns  -> labels/metadata, always uncoloured
  data columns     -> one class per 3-column triple (name, room, teacher),
                      identified by the triple's background/foreground pair

Every row except the reference row is scanned; each coloured, non-empty triple
under a valid period contributes one SlotEntry to its colour group.
"""

import re
from collections.abc import Sequence

from src.timetable.colors import is_data_color, is_near_black
from src.timetable.errors import NoDataFoundError
from src.timetable.logging import get_logger
from src.timetable.models import CellRow, ColorGroupKey, SlotEntry, TimetableGroup

log = get_logger(__name__)

REFERENCE_ROW = 2
GRID_WIDTH = 22
SLOT_STRIDE = 3
MIN_PERIOD = 1
MAX_PERIOD = 6

_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def _parse_period(text: str) -> int | None:
    """Leading decimal integer in range 1..6, else None ("3rd" -> 3, "P3" -> None)."""
    match = _LEADING_INT.match(text)
    if not match:
        return None
    number = int(match.group(1))
    if MIN_PERIOD <= number <= MAX_PERIOD:
        return number
    return None


def resolve_periods(
    grid: Sequence[CellRow], reference_row: int = REFERENCE_ROW
) -> list[int | None]:
    """Read the period number heading each grid column.

    Args:
        grid: Rows of the timetable sheet.
        reference_row: Index of the row holding the period numbers.

    Returns:
        One entry per column (GRID_WIDTH long): a period 1..6, or None for
        columns that never contribute to output.
    """
    if reference_row >= len(grid):
        return [None] * GRID_WIDTH
    ref = grid[reference_row]
    return [_parse_period(ref.text(column)) for column in range(GRID_WIDTH)]


def find_data_start_column(
    grid: Sequence[CellRow], reference_row: int = REFERENCE_ROW
) -> int | None:
    """Find the first column holding any class-coloured background.

    The reference row is ignored. Returns None when the grid has no such column.
    """
    for column in range(GRID_WIDTH):
        for index, row in enumerate(grid):
            if index == reference_row:
                continue
            if is_data_color(row.background(column)):
                return column
    return None


def group_key_for(background: str, foreground: str) -> ColorGroupKey:
    """Build the colour group key for a cell.

    Near-black (or missing) foreground means "default text colour" and is
    dropped from the key. Colours are compared case-insensitively.
    """
    display_fg = None if is_near_black(foreground) else foreground.strip().lower()
    return ColorGroupKey(background=background.strip().lower(), foreground=display_fg)


def group_slots(
    grid: Sequence[CellRow],
    reference_row: int,
    periods: Sequence[int | None],
    data_start_column: int,
) -> dict[ColorGroupKey, TimetableGroup]:
    """Walk the data region in 3-column strides and group slot entries by colour.

    Entries keep row-scan order. Identical triples on different rows are kept
    as separate entries.

    Raises:
        NoDataFoundError: If no triple qualified.
    """
    groups: dict[ColorGroupKey, TimetableGroup] = {}

    for index, row in enumerate(grid):
        if index == reference_row:
            continue
        for column in range(data_start_column, GRID_WIDTH, SLOT_STRIDE):
            background = row.background(column)
            if not is_data_color(background):
                continue

            entry = SlotEntry(
                d1=row.text(column),
                d2=row.text(column + 1),
                d3=row.text(column + 2),
            )
            if not (entry.d1 or entry.d2 or entry.d3):
                continue

            period = periods[column] if column < len(periods) else None
            if period is None:
                continue

            key = group_key_for(background, row.foreground(column))
            group = groups.get(key)
            if group is None:
                group = TimetableGroup(bg=key.background, fg=key.foreground)
                groups[key] = group
            group.add(period, entry)

    if not groups:
        raise NoDataFoundError("No coloured groups found")
    return groups


def extract_timetable(
    grid: Sequence[CellRow], reference_row: int = REFERENCE_ROW
) -> dict[ColorGroupKey, TimetableGroup]:
    """Run the full extraction pipeline over a grid.

    Pure in-memory computation; callers persist the result afterwards.

    Raises:
        NoDataFoundError: If the grid has no coloured data region or no
            qualifying slot.
    """
    periods = resolve_periods(grid, reference_row)
    data_start = find_data_start_column(grid, reference_row)
    if data_start is None:
        log.info("extraction_no_colour", rows=len(grid))
        raise NoDataFoundError("No coloured groups found")

    groups = group_slots(grid, reference_row, periods, data_start)
    log.info(
        "timetable_extracted",
        rows=len(grid),
        data_start_column=data_start,
        groups=len(groups),
        entries=sum(len(e) for g in groups.values() for e in g.slots.values()),
    )
    return groups


def serialize_groups(groups: dict[ColorGroupKey, TimetableGroup]) -> dict[str, dict]:
    """Convert grouped output to the stored/wire form keyed by "bg||fg"."""
    return {key.serialize(): group.model_dump(mode="json") for key, group in groups.items()}
