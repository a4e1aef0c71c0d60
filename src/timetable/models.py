"""Pydantic models for grids, colour groups and stored snapshots.

All data structures use Pydantic v2 for validation, serialization, and type safety.
Wire names match what the spreadsheet automation and viewer clients already
send and read (bgColors/fgColors, d1/d2/d3, date/map/names).
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

KEY_SEPARATOR = "||"


class CellRow(BaseModel):
    """One spreadsheet row: parallel text, background and foreground lists.

    Lists may be shorter than the grid width; missing indices read as empty.
    """

    model_config = ConfigDict(populate_by_name=True)

    values: list[Any] = Field(default_factory=list)
    bg_colors: list[str | None] = Field(default_factory=list, alias="bgColors")
    fg_colors: list[str | None] = Field(default_factory=list, alias="fgColors")

    def text(self, column: int) -> str:
        if column >= len(self.values) or self.values[column] is None:
            return ""
        return str(self.values[column]).strip()

    def background(self, column: int) -> str:
        if column >= len(self.bg_colors):
            return ""
        return self.bg_colors[column] or ""

    def foreground(self, column: int) -> str:
        if column >= len(self.fg_colors):
            return ""
        return self.fg_colors[column] or ""


class ColorGroupKey(BaseModel):
    """Background plus display foreground; identifies one class.

    Compared and hashed by value. The "bg||fg" string form exists only for
    persistence and the wire.
    """

    model_config = ConfigDict(frozen=True)

    background: str
    foreground: str | None = None

    def serialize(self) -> str:
        return f"{self.background}{KEY_SEPARATOR}{self.foreground or ''}"

    @classmethod
    def parse(cls, text: str) -> "ColorGroupKey":
        background, _, foreground = text.partition(KEY_SEPARATOR)
        return cls(background=background, foreground=foreground or None)


class SlotEntry(BaseModel):
    """Three consecutive cell texts (e.g. subject, room, teacher)."""

    d1: str = ""
    d2: str = ""
    d3: str = ""


class TimetableGroup(BaseModel):
    """All slot entries for one colour group, keyed by period number."""

    bg: str
    fg: str | None = None
    slots: dict[int, list[SlotEntry]] = Field(default_factory=dict)

    def add(self, period: int, entry: SlotEntry) -> None:
        self.slots.setdefault(period, []).append(entry)


class TimetableSnapshot(BaseModel):
    """The whole stored timetable state, replaced atomically on each write.

    ``map`` is kept as plain JSON so manual uploads pass through verbatim;
    extraction results are dumped into it with serialized group keys.
    """

    date: str
    map: dict[str, Any]
    names: dict[str, Any] = Field(default_factory=dict)


class ExtractionResult(BaseModel):
    """Outcome of a successful grid extraction."""

    group_count: int
