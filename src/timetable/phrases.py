"""Shared phrase catalog with per-user overrides.

Phrases are keyed by hotkey ("1".."0", "Alt+1".."Alt+9"). A user's override
replaces the base phrase with the same key; override keys missing from the
base are appended.
"""

import copy
from typing import Any

from src.timetable.errors import MalformedInputError
from src.timetable.logging import get_logger
from src.timetable.store import KeyValueStore

log = get_logger(__name__)

PHRASES_KEY = "obs:phrases"


def _phrase(key: str, label: str, text: str) -> dict[str, str]:
    return {"key": key, "label": label, "text": f"{text}\n\n"}


DEFAULT_PHRASES: dict[str, Any] = {
    "base": [
        _phrase("1", "Scribed", "Scribed for written tasks."),
        _phrase("2", "Read to", "Read to student."),
        _phrase("3", "Broke task down", "Broke task into smaller steps."),
        _phrase("4", "Redirected/Refocused", "The student was redirected or refocused."),
        _phrase("5", "Re-explained", "Re-explained instructions."),
        _phrase("6", "Visual Aids", "Provided visual aids like charts and diagrams to help."),
        _phrase("7", "Moved to quiet space", "Provided a quiet space."),
        _phrase("8", "Graphic organisers", "Provided graphic organisers."),
        _phrase("9", "Simplified instructions", "Provided simplified instructions."),
        _phrase("0", "Positive reinforcement", "Provided positive reinforcement."),
        _phrase("Alt+1", "Provided Materials", "Given extra materials/photocopies/notes."),
        _phrase("Alt+2", "Provided IT Support", "Supported with technology issues."),
        _phrase("Alt+3", "Special Provision", "Special provision in Exam/SAC/test."),
        _phrase("Alt+4", "Constructive Feedback", "Provided constructive feedback on draft."),
        _phrase(
            "Alt+5",
            "Structured Template",
            "Provided a template with sentence stems and/or structured features.",
        ),
        _phrase(
            "Alt+6",
            "Idea Discussion",
            "Engaged in discussion to support development of ideas.",
        ),
        _phrase("Alt+7", "Goal Setting Tasks", "Provided with goal setting tasks."),
        _phrase(
            "Alt+8",
            "Practical Task Help",
            "Assisted student in completing practical activities.",
        ),
        _phrase("Alt+9", "Supervised Assessment", "Supervised Assessment (small group room)."),
    ],
    "overrides": {},
}


def _require_phrase_list(value: Any, field: str) -> None:
    if not isinstance(value, list):
        raise MalformedInputError(f"{field} must be array")
    if not all(isinstance(p, dict) for p in value):
        raise MalformedInputError(f"{field} entries must be objects")


def merge_phrases(
    base: list[dict[str, Any]], overrides: list[dict[str, Any]]
) -> list[dict[str, Any]]:
    """Overlay a user's overrides onto the base list, keyed by phrase key."""
    by_key = {o.get("key"): o for o in overrides}
    merged = [by_key.get(p.get("key"), p) for p in base]
    base_keys = {p.get("key") for p in base}
    merged.extend(o for o in overrides if o.get("key") not in base_keys)
    return merged


class PhraseCatalog:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def _load(self) -> dict[str, Any]:
        data = self.store.get(PHRASES_KEY)
        if not isinstance(data, dict):
            return copy.deepcopy(DEFAULT_PHRASES)
        data.setdefault("base", [])
        data.setdefault("overrides", {})
        return data

    def get(self, user: str = "") -> dict[str, Any]:
        data = self._load()
        base = data["base"]
        overrides = data["overrides"].get(user, []) if user else []
        return {
            "base": base,
            "overrides": overrides,
            "merged": merge_phrases(base, overrides),
            "user": user or None,
        }

    def set_base(self, base: Any) -> int:
        _require_phrase_list(base, "base")
        data = self._load()
        data["base"] = base
        self.store.set(PHRASES_KEY, data)
        log.info("phrases_base_saved", count=len(base))
        return len(base)

    def set_overrides(self, user: Any, overrides: Any) -> None:
        if not user:
            raise MalformedInputError("user required")
        if not isinstance(user, str):
            raise MalformedInputError("user must be a string")
        _require_phrase_list(overrides, "overrides")
        data = self._load()
        data["overrides"][user] = overrides
        self.store.set(PHRASES_KEY, data)
        log.info("phrases_override_saved", user=user, count=len(overrides))

    def users(self) -> list[str]:
        return list(self._load()["overrides"].keys())
