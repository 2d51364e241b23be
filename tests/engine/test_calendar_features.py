"""Tests for calendar features: day of week, weekend, season, fixed holidays."""

import unittest
from datetime import date, timedelta

from ecopulse.engine.features.calendar import (
    FIXED_HOLIDAYS,
    build_calendar_features,
    day_of_week,
    is_holiday,
    is_weekend,
    season,
)


class TestDayOfWeek(unittest.TestCase):
    def test_sunday_is_zero(self):
        self.assertEqual(day_of_week(date(2025, 3, 2)), 0)  # Sunday

    def test_saturday_is_six(self):
        self.assertEqual(day_of_week(date(2025, 3, 8)), 6)

    def test_full_week(self):
        start = date(2025, 3, 2)
        self.assertEqual([day_of_week(start + timedelta(days=i)) for i in range(7)], list(range(7)))

    def test_weekend_is_saturday_and_sunday(self):
        week = [date(2025, 3, 2) + timedelta(days=i) for i in range(7)]
        flags = [is_weekend(d) for d in week]
        self.assertEqual(flags, [True, False, False, False, False, False, True])


class TestSeason(unittest.TestCase):
    def test_full_table(self):
        expected = {1: 1, 2: 1, 3: 2, 4: 2, 5: 2, 6: 3, 7: 3, 8: 3, 9: 4, 10: 4, 11: 4, 12: 1}
        for month, s in expected.items():
            with self.subTest(month=month):
                self.assertEqual(season(month), s)

    def test_out_of_range_month(self):
        with self.assertRaises(ValueError):
            season(0)
        with self.assertRaises(ValueError):
            season(13)


class TestHoliday(unittest.TestCase):
    def test_fixed_pairs_any_year(self):
        for year in (1999, 2024, 2031):
            for month, day in FIXED_HOLIDAYS:
                with self.subTest(year=year, month=month, day=day):
                    self.assertTrue(is_holiday(date(year, month, day)))

    def test_exactly_six_holidays_per_year(self):
        d = date(2025, 1, 1)
        count = 0
        while d.year == 2025:
            count += is_holiday(d)
            d += timedelta(days=1)
        self.assertEqual(count, 6)

    def test_regular_day(self):
        self.assertFalse(is_holiday(date(2025, 4, 22)))
        self.assertFalse(is_holiday(date(2025, 12, 25)))


class TestBuildCalendarFeatures(unittest.TestCase):
    def test_new_year_2022(self):
        # 2022-01-01 was a Saturday
        features = build_calendar_features(date(2022, 1, 1))
        self.assertEqual(
            features,
            {"month": 1, "day_of_week": 6, "is_weekend": 1, "is_holiday": 1, "season": 1},
        )

    def test_midweek_summer_day(self):
        features = build_calendar_features(date(2025, 7, 16))  # Wednesday
        self.assertEqual(features["day_of_week"], 3)
        self.assertEqual(features["is_weekend"], 0)
        self.assertEqual(features["is_holiday"], 0)
        self.assertEqual(features["season"], 3)


if __name__ == "__main__":
    unittest.main()
