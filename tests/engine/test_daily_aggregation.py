"""Tests for daily aggregation, trailing windows and the historical date shift."""

from datetime import UTC, date, datetime, timedelta

from ecopulse.engine.features.daily import (
    aggregate_daily,
    group_by_building,
    shift_readings,
    shift_years,
    trailing_window,
)
from ecopulse.engine.schema import DailyAggregate, Reading
from tests.synthetic.consumption import make_readings

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=UTC)


class TestAggregateDaily:
    def test_sums_readings_per_day(self):
        readings = make_readings("B1", datetime(2025, 3, 10, tzinfo=UTC), days=3, energy=12.0, water=3.0, per_day=4)
        rows = aggregate_daily(readings)
        assert [r.date for r in rows] == [date(2025, 3, 10), date(2025, 3, 11), date(2025, 3, 12)]
        assert all(r.energy_sum == 12.0 for r in rows)
        assert all(r.water_sum == 3.0 for r in rows)

    def test_ordered_by_building_then_date(self):
        readings = [
            Reading("B2", datetime(2025, 3, 11, 8, tzinfo=UTC), 1.0, 0.1),
            Reading("B1", datetime(2025, 3, 12, 8, tzinfo=UTC), 2.0, 0.2),
            Reading("B1", datetime(2025, 3, 11, 8, tzinfo=UTC), 3.0, 0.3),
        ]
        rows = aggregate_daily(readings)
        assert [(r.building_id, r.date.day) for r in rows] == [("B1", 11), ("B1", 12), ("B2", 11)]

    def test_empty(self):
        assert aggregate_daily([]) == []


class TestTrailingWindow:
    def test_keeps_half_open_interval(self):
        readings = [
            Reading("B1", NOW - timedelta(days=30), 1.0, 1.0),  # exactly at start: excluded
            Reading("B1", NOW - timedelta(days=29, hours=23), 2.0, 1.0),
            Reading("B1", NOW, 3.0, 1.0),  # exactly now: included
            Reading("B1", NOW + timedelta(seconds=1), 4.0, 1.0),
        ]
        kept = trailing_window(readings, NOW, 30)
        assert [r.energy for r in kept] == [2.0, 3.0]


class TestDateShift:
    def test_shift_datetime(self):
        ts = datetime(2015, 3, 10, 9, 30, tzinfo=UTC)
        assert shift_years(ts, 10) == datetime(2025, 3, 10, 9, 30, tzinfo=UTC)

    def test_leap_day_lands_on_28th(self):
        assert shift_years(date(2016, 2, 29), 1) == date(2017, 2, 28)

    def test_zero_is_noop(self):
        d = date(2020, 2, 29)
        assert shift_years(d, 0) is d

    def test_shift_readings(self):
        readings = make_readings("B1", datetime(2015, 3, 1, tzinfo=UTC), days=2)
        shifted = shift_readings(readings, 10)
        assert [r.timestamp.year for r in shifted] == [2025, 2025]
        assert [r.energy for r in shifted] == [r.energy for r in readings]


class TestGroupByBuilding:
    def test_groups_sorted_by_date(self):
        rows = [
            DailyAggregate("B1", date(2025, 3, 2), 2.0, 0.2),
            DailyAggregate("B2", date(2025, 3, 1), 5.0, 0.5),
            DailyAggregate("B1", date(2025, 3, 1), 1.0, 0.1),
        ]
        grouped = group_by_building(rows)
        assert set(grouped) == {"B1", "B2"}
        assert [r.energy_sum for r in grouped["B1"]] == [1.0, 2.0]
