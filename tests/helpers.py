"""Grid builders shared by the test modules."""

from src.timetable.extraction import GRID_WIDTH
from src.timetable.models import CellRow

WHITE = "#ffffff"


def blank_row(width: int = GRID_WIDTH) -> dict:
    return {
        "values": [""] * width,
        "bgColors": [WHITE] * width,
        "fgColors": ["#000000"] * width,
    }


def reference_row(periods: dict[int, object], width: int = GRID_WIDTH) -> dict:
    """Row 2 with the given column -> period text."""
    row = blank_row(width)
    for column, text in periods.items():
        row["values"][column] = text
    return row


def paint(row: dict, column: int, texts: tuple, bg: str, fg: str = "#000000") -> dict:
    """Colour one 3-column triple starting at column and fill its texts."""
    for offset, text in enumerate(texts):
        row["values"][column + offset] = text
        row["bgColors"][column + offset] = bg
        row["fgColors"][column + offset] = fg
    return row


def build_raw_grid(ref: dict, data_rows: dict[int, dict], height: int = 8) -> list[dict]:
    """Grid of `height` blank rows with the reference row at 2 and data rows placed."""
    rows = [blank_row() for _ in range(height)]
    rows[2] = ref
    for index, row in data_rows.items():
        rows[index] = row
    return rows


def to_grid(rows: list[dict]) -> list[CellRow]:
    return [CellRow.model_validate(r) for r in rows]
