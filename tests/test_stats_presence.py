"""Tests for the usage event log and heartbeat tracker."""

import unittest
from datetime import datetime, timedelta, timezone

from src.timetable.errors import MalformedInputError
from src.timetable.presence import PresenceTracker
from src.timetable.stats import MAX_EVENTS, STATS_KEY, EventLog
from src.timetable.store import MemoryStore


class TestEventLog(unittest.TestCase):
    def setUp(self):
        self.store = MemoryStore()
        self.ts = "2026-03-02T09:00:00.000Z"
        self.log = EventLog(self.store, clock=lambda: self.ts)

    def test_summary(self):
        self.log.log_event("sam", "1", "Scribed")
        self.log.log_event("sam", "2", None)
        self.ts = "2026-03-03T10:00:00.000Z"
        self.log.log_event("alex", "1", "Scribed")

        summary = self.log.summary()
        self.assertEqual(summary["totalEvents"], 3)
        self.assertEqual(summary["byKey"]["1"], {"label": "Scribed", "total": 2, "byUser": {"sam": 1, "alex": 1}})
        self.assertEqual(summary["byKey"]["2"]["label"], "2")
        self.assertEqual(summary["byUser"]["sam"], {"total": 2, "byKey": {"1": 1, "2": 1}})
        self.assertEqual(summary["byDay"], {"2026-03-02": 2, "2026-03-03": 1})
        self.assertEqual(summary["recentEvents"][0]["user"], "alex")

    def test_user_summary(self):
        self.log.log_event("sam", "1", "Scribed")
        self.log.log_event("sam", "1", "Scribed")
        self.log.log_event("alex", "2", "Read to")
        self.assertEqual(
            self.log.user_summary("sam"),
            {"user": "sam", "total": 2, "byKey": {"1": {"label": "Scribed", "count": 2}}},
        )

    def test_log_is_capped(self):
        self.store.set(STATS_KEY, {"events": [{"ts": self.ts, "user": "u", "key": "k", "label": "k"}] * MAX_EVENTS})
        self.log.log_event("sam", "new")
        events = self.store.get(STATS_KEY)["events"]
        self.assertEqual(len(events), MAX_EVENTS)
        self.assertEqual(events[-1]["key"], "new")

    def test_validation(self):
        with self.assertRaises(MalformedInputError):
            self.log.log_event("sam", "")
        with self.assertRaises(MalformedInputError):
            self.log.user_summary("")


class TestPresenceTracker(unittest.TestCase):
    def test_online_window(self):
        now = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
        clock = {"now": now}
        tracker = PresenceTracker(MemoryStore(), clock=lambda: clock["now"])
        tracker.beat("sam")
        clock["now"] = now + timedelta(minutes=2)
        tracker.beat("alex")
        clock["now"] = now + timedelta(minutes=4)

        users = tracker.online_users()
        self.assertFalse(users["sam"]["online"])
        self.assertTrue(users["alex"]["online"])
        self.assertEqual(users["sam"]["lastSeen"], now.isoformat())

    def test_user_required(self):
        with self.assertRaises(MalformedInputError):
            PresenceTracker(MemoryStore()).beat(None)


class TestTypeValidation(unittest.TestCase):
    def test_non_string_user_and_key(self):
        log = EventLog(MemoryStore())
        for user, key in ((["bob"], "1"), ("bob", ["1"]), (7, "1")):
            with self.subTest(user=user, key=key):
                with self.assertRaises(MalformedInputError):
                    log.log_event(user, key)
        self.assertEqual(log.summary()["totalEvents"], 0)

    def test_non_string_heartbeat_user(self):
        with self.assertRaises(MalformedInputError):
            PresenceTracker(MemoryStore()).beat({"name": "bob"})
