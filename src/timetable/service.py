"""Timetable snapshot lifecycle: uploads, extraction, name updates, reads.

The snapshot lives under one store key and is always written whole, so a
reader sees either the previous snapshot or the new one. Extraction finishes
before any store I/O starts.
"""

from collections.abc import Callable
from typing import Any, Literal

from pydantic import ValidationError

from src.timetable.cycle import today_str
from src.timetable.errors import MalformedInputError
from src.timetable.extraction import extract_timetable, serialize_groups
from src.timetable.logging import get_logger
from src.timetable.models import CellRow, ExtractionResult, TimetableSnapshot
from src.timetable.store import KeyValueStore

log = get_logger(__name__)

TIMETABLE_KEY = "timetable"

Staleness = Literal["keep", "same_day"]


def _require_object(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise MalformedInputError("Expected a JSON object")
    return payload


def _optional_names(payload: dict[str, Any]) -> dict[str, Any] | None:
    names = payload.get("names")
    if names is not None and not isinstance(names, dict):
        raise MalformedInputError("names must be an object")
    return names


class TimetableService:
    """Owns the stored timetable snapshot.

    Args:
        store: Persistence tier selected at startup.
        staleness: "keep" serves the last snapshot indefinitely; "same_day"
            hides a snapshot captured on an earlier date.
        clock: Returns today's capture label; injectable for tests.
    """

    def __init__(
        self,
        store: KeyValueStore,
        staleness: Staleness = "keep",
        clock: Callable[[], str] = today_str,
    ) -> None:
        self.store = store
        self.staleness = staleness
        self._clock = clock

    def current(self) -> TimetableSnapshot | None:
        """Return the stored snapshot, or None if absent or stale."""
        raw = self.store.get(TIMETABLE_KEY)
        if raw is None:
            return None
        try:
            snapshot = TimetableSnapshot.model_validate(raw)
        except ValidationError as e:
            log.warning("timetable_unreadable", error=str(e))
            return None

        if self.staleness == "same_day" and snapshot.date != self._clock():
            log.debug("timetable_stale", captured=snapshot.date, today=self._clock())
            return None
        return snapshot

    def _save(self, snapshot: TimetableSnapshot) -> None:
        self.store.set(TIMETABLE_KEY, snapshot.model_dump(mode="json"))

    def upload(self, payload: Any) -> TimetableSnapshot:
        """Store a pre-parsed timetable from the admin page.

        Raises:
            MalformedInputError: If ``map`` is missing or not an object.
        """
        payload = _require_object(payload)
        group_map = payload.get("map")
        if group_map is None:
            raise MalformedInputError("Missing map")
        if not isinstance(group_map, dict):
            raise MalformedInputError("map must be an object")

        snapshot = TimetableSnapshot(
            date=self._clock(),
            map=group_map,
            names=_optional_names(payload) or {},
        )
        self._save(snapshot)
        log.info(
            "timetable_saved",
            source="upload",
            backend=self.store.backend,
            groups=len(group_map),
        )
        return snapshot

    def automate(self, payload: Any) -> ExtractionResult:
        """Extract a timetable from a raw grid and store it.

        Names supplied with the grid replace the stored ones; otherwise the
        previous snapshot's names carry forward.

        Raises:
            MalformedInputError: If ``rows`` is missing or malformed.
            NoDataFoundError: If the grid holds no coloured groups.
        """
        payload = _require_object(payload)
        rows = payload.get("rows")
        if not isinstance(rows, list):
            raise MalformedInputError("Missing rows")
        try:
            grid = [CellRow.model_validate(row) for row in rows]
        except ValidationError as e:
            raise MalformedInputError(f"Invalid rows: {e.error_count()} error(s)") from e
        names = _optional_names(payload)

        groups = extract_timetable(grid)

        if names is None:
            existing = self.store.get(TIMETABLE_KEY)
            names = existing.get("names", {}) if isinstance(existing, dict) else {}

        snapshot = TimetableSnapshot(
            date=self._clock(),
            map=serialize_groups(groups),
            names=names,
        )
        self._save(snapshot)
        log.info(
            "timetable_saved",
            source="automate",
            backend=self.store.backend,
            groups=len(groups),
        )
        return ExtractionResult(group_count=len(groups))

    def update_names(self, payload: Any) -> bool:
        """Replace only the display-name map of the stored snapshot.

        Returns:
            True if a snapshot was updated, False if none exists yet.
        """
        payload = _require_object(payload)
        names = _optional_names(payload)
        if names is None:
            raise MalformedInputError("Missing names")

        raw = self.store.get(TIMETABLE_KEY)
        if raw is None:
            log.info("names_update_skipped", reason="no_timetable")
            return False
        try:
            snapshot = TimetableSnapshot.model_validate(raw)
        except ValidationError as e:
            log.warning("timetable_unreadable", error=str(e))
            return False

        snapshot.names = names
        self._save(snapshot)
        log.info("names_saved", backend=self.store.backend, names=len(names))
        return True

    def clear(self) -> None:
        self.store.delete(TIMETABLE_KEY)
        log.info("timetable_deleted", backend=self.store.backend)
