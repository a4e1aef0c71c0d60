"""Tests for the ten-day rotation and capture labels."""

import unittest
from datetime import date

from src.timetable.cycle import sheet_name_for_date, today_str

START = date(2026, 2, 23)  # Monday


class TestSheetNameForDate(unittest.TestCase):
    def test_first_day(self):
        self.assertEqual(sheet_name_for_date(START, START), "Day 1")

    def test_weekend(self):
        self.assertIsNone(sheet_name_for_date(date(2026, 2, 28), START))
        self.assertIsNone(sheet_name_for_date(date(2026, 3, 1), START))

    def test_second_week(self):
        self.assertEqual(sheet_name_for_date(date(2026, 3, 2), START), "Day 6")
        self.assertEqual(sheet_name_for_date(date(2026, 3, 6), START), "Day 10")

    def test_wraps_after_ten(self):
        self.assertEqual(sheet_name_for_date(date(2026, 3, 9), START), "Day 1")
        self.assertEqual(sheet_name_for_date(date(2026, 3, 20), START), "Day 10")


class TestTodayStr(unittest.TestCase):
    def test_iso_format(self):
        self.assertEqual(today_str(date(2026, 3, 2)), "2026-03-02")
