"""Tests for snapshot uploads, extraction merge policy and staleness."""

import unittest

from src.timetable.errors import MalformedInputError, NoDataFoundError
from src.timetable.service import TIMETABLE_KEY, TimetableService
from src.timetable.store import MemoryStore
from tests.helpers import blank_row, build_raw_grid, paint, reference_row

RED = "#ff0000"
BLUE = "#0000ff"


def _grid(texts=("Math", "101", "Smith"), bg=RED):
    ref = reference_row({2: "3"})
    return build_raw_grid(ref, {5: paint(blank_row(), 2, texts, bg)})


class ServiceTestCase(unittest.TestCase):
    def setUp(self):
        self.today = "2026-03-02"
        self.store = MemoryStore()
        self.service = TimetableService(self.store, clock=lambda: self.today)


class TestUpload(ServiceTestCase):
    def test_upload_replaces_snapshot(self):
        self.service.upload({"map": {"a||": {"bg": "a"}}, "names": {"a||": "7B"}})
        snapshot = self.service.current()
        self.assertEqual(snapshot.date, "2026-03-02")
        self.assertEqual(snapshot.map, {"a||": {"bg": "a"}})
        self.assertEqual(snapshot.names, {"a||": "7B"})

    def test_upload_defaults_names(self):
        self.service.upload({"map": {}})
        self.assertEqual(self.service.current().names, {})

    def test_upload_requires_map(self):
        with self.assertRaisesRegex(MalformedInputError, "Missing map"):
            self.service.upload({"names": {}})
        self.assertIsNone(self.service.current())

    def test_upload_rejects_non_object(self):
        for payload in (None, [], "map"):
            with self.subTest(payload=payload):
                with self.assertRaises(MalformedInputError):
                    self.service.upload(payload)


class TestAutomate(ServiceTestCase):
    def test_extraction_is_stored(self):
        result = self.service.automate({"rows": _grid()})
        self.assertEqual(result.group_count, 1)
        snapshot = self.service.current()
        self.assertEqual(
            snapshot.map,
            {
                "#ff0000||": {
                    "bg": RED,
                    "fg": None,
                    "slots": {"3": [{"d1": "Math", "d2": "101", "d3": "Smith"}]},
                }
            },
        )
        self.assertEqual(snapshot.names, {})

    def test_missing_rows(self):
        for payload in ({}, {"rows": "x"}, {"rows": None}):
            with self.subTest(payload=payload):
                with self.assertRaisesRegex(MalformedInputError, "Missing rows"):
                    self.service.automate(payload)

    def test_invalid_row_shape(self):
        with self.assertRaises(MalformedInputError):
            self.service.automate({"rows": [{"bgColors": "red"}]})

    def test_no_data_leaves_state_alone(self):
        self.service.upload({"map": {"keep||": {}}, "names": {"keep||": "9C"}})
        with self.assertRaises(NoDataFoundError):
            self.service.automate({"rows": build_raw_grid(reference_row({2: "1"}), {})})
        self.assertEqual(self.service.current().map, {"keep||": {}})

    def test_names_carried_forward(self):
        self.service.automate({"rows": _grid(), "names": {"#ff0000||": "10A"}})
        self.service.automate({"rows": _grid(bg=BLUE)})
        snapshot = self.service.current()
        self.assertEqual(list(snapshot.map), ["#0000ff||"])
        self.assertEqual(snapshot.names, {"#ff0000||": "10A"})

    def test_supplied_names_replace(self):
        self.service.automate({"rows": _grid(), "names": {"#ff0000||": "10A", "x||": "11B"}})
        self.service.automate({"rows": _grid(), "names": {"#ff0000||": "10C"}})
        self.assertEqual(self.service.current().names, {"#ff0000||": "10C"})

    def test_empty_names_replace(self):
        self.service.automate({"rows": _grid(), "names": {"#ff0000||": "10A"}})
        self.service.automate({"rows": _grid(), "names": {}})
        self.assertEqual(self.service.current().names, {})

    def test_names_carried_from_stale_snapshot(self):
        service = TimetableService(self.store, staleness="same_day", clock=lambda: self.today)
        service.automate({"rows": _grid(), "names": {"#ff0000||": "10A"}})
        self.today = "2026-03-03"
        service.automate({"rows": _grid()})
        self.assertEqual(service.current().names, {"#ff0000||": "10A"})


class TestUpdateNames(ServiceTestCase):
    def test_only_names_change(self):
        self.service.automate({"rows": _grid()})
        before = self.store.get(TIMETABLE_KEY)
        self.assertTrue(self.service.update_names({"names": {"#ff0000||": "8D"}}))
        after = self.store.get(TIMETABLE_KEY)
        self.assertEqual(after["map"], before["map"])
        self.assertEqual(after["date"], before["date"])
        self.assertEqual(after["names"], {"#ff0000||": "8D"})

    def test_no_snapshot_is_noop(self):
        self.assertFalse(self.service.update_names({"names": {"a||": "x"}}))
        self.assertIsNone(self.store.get(TIMETABLE_KEY))

    def test_names_required(self):
        with self.assertRaises(MalformedInputError):
            self.service.update_names({})


class TestClearAndStaleness(ServiceTestCase):
    def test_clear(self):
        self.service.upload({"map": {}})
        self.service.clear()
        self.assertIsNone(self.service.current())

    def test_keep_serves_old_snapshot(self):
        self.service.upload({"map": {}})
        self.today = "2026-03-09"
        self.assertIsNotNone(self.service.current())

    def test_same_day_hides_old_snapshot(self):
        service = TimetableService(self.store, staleness="same_day", clock=lambda: self.today)
        service.upload({"map": {}})
        self.assertIsNotNone(service.current())
        self.today = "2026-03-03"
        self.assertIsNone(service.current())
        self.assertIsNotNone(self.store.get(TIMETABLE_KEY))

    def test_unreadable_snapshot_is_absent(self):
        self.store.set(TIMETABLE_KEY, {"unexpected": True})
        self.assertIsNone(self.service.current())
