"""Heartbeat tracking for clients that ping while open."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from src.timetable.errors import MalformedInputError
from src.timetable.store import KeyValueStore

HEARTBEAT_KEY = "obs:heartbeat"
ONLINE_WINDOW = timedelta(minutes=3)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PresenceTracker:
    def __init__(
        self, store: KeyValueStore, clock: Callable[[], datetime] = _utc_now
    ) -> None:
        self.store = store
        self._clock = clock

    def beat(self, user: Any) -> None:
        if not user:
            raise MalformedInputError("user required")
        if not isinstance(user, str):
            raise MalformedInputError("user must be a string")
        beats = self.store.get(HEARTBEAT_KEY) or {}
        beats[user] = self._clock().isoformat()
        self.store.set(HEARTBEAT_KEY, beats)

    def online_users(self) -> dict[str, dict[str, Any]]:
        """Last-seen time per user, online if seen within ONLINE_WINDOW."""
        beats = self.store.get(HEARTBEAT_KEY) or {}
        now = self._clock()
        result = {}
        for user, seen in beats.items():
            try:
                last_seen = datetime.fromisoformat(seen.replace("Z", "+00:00"))
            except (AttributeError, ValueError):
                result[user] = {"lastSeen": seen, "online": False}
                continue
            if last_seen.tzinfo is None:
                last_seen = last_seen.replace(tzinfo=timezone.utc)
            result[user] = {"lastSeen": seen, "online": now - last_seen < ONLINE_WINDOW}
        return result
