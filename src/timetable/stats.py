"""Usage event log and its aggregate views."""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from src.timetable.errors import MalformedInputError
from src.timetable.store import KeyValueStore

STATS_KEY = "obs:stats"
MAX_EVENTS = 50_000
RECENT_EVENTS = 200


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class EventLog:
    def __init__(
        self, store: KeyValueStore, clock: Callable[[], str] = _utc_now_iso
    ) -> None:
        self.store = store
        self._clock = clock

    def _events(self) -> list[dict[str, Any]]:
        data = self.store.get(STATS_KEY)
        if not isinstance(data, dict):
            return []
        return data.get("events", [])

    def log_event(self, user: Any, key: Any, label: Any = None) -> None:
        """Append one phrase-use event, keeping only the newest MAX_EVENTS."""
        if not user or not key:
            raise MalformedInputError("user and key required")
        if not isinstance(user, str) or not isinstance(key, str):
            raise MalformedInputError("user and key must be strings")
        if label is not None and not isinstance(label, str):
            raise MalformedInputError("label must be a string")
        events = self._events()
        events.append({"ts": self._clock(), "user": user, "key": key, "label": label or key})
        self.store.set(STATS_KEY, {"events": events[-MAX_EVENTS:]})

    def summary(self) -> dict[str, Any]:
        events = self._events()
        by_key: dict[str, Any] = {}
        by_user: dict[str, Any] = {}
        by_day: dict[str, int] = {}

        for event in events:
            key, user = event["key"], event["user"]
            key_stats = by_key.setdefault(
                key, {"label": event.get("label"), "total": 0, "byUser": {}}
            )
            key_stats["total"] += 1
            key_stats["byUser"][user] = key_stats["byUser"].get(user, 0) + 1

            user_stats = by_user.setdefault(user, {"total": 0, "byKey": {}})
            user_stats["total"] += 1
            user_stats["byKey"][key] = user_stats["byKey"].get(key, 0) + 1

            day = event["ts"][:10]
            by_day[day] = by_day.get(day, 0) + 1

        return {
            "totalEvents": len(events),
            "byKey": by_key,
            "byUser": by_user,
            "byDay": by_day,
            "recentEvents": list(reversed(events[-RECENT_EVENTS:])),
        }

    def user_summary(self, user: str) -> dict[str, Any]:
        if not user:
            raise MalformedInputError("user required")
        mine = [e for e in self._events() if e["user"] == user]
        by_key: dict[str, Any] = {}
        for event in mine:
            entry = by_key.setdefault(event["key"], {"label": event.get("label"), "count": 0})
            entry["count"] += 1
        return {"user": user, "total": len(mine), "byKey": by_key}
