"""Daily aggregation of raw readings and trailing-window selection."""

from collections import defaultdict
from datetime import datetime, timedelta

from ecopulse.engine.schema import DailyAggregate, Reading


def shift_years(ts, years: int):
    """Move a date or datetime by whole years. Feb 29 lands on Feb 28 in non-leap years."""
    if not years:
        return ts
    try:
        return ts.replace(year=ts.year + years)
    except ValueError:
        return ts.replace(year=ts.year + years, day=28)


def shift_readings(readings: list[Reading], years: int) -> list[Reading]:
    """Apply a historical date shift to every reading (no-op when years == 0)."""
    if not years:
        return list(readings)
    return [
        Reading(r.building_id, shift_years(r.timestamp, years), r.energy, r.water)
        for r in readings
    ]


def trailing_window(readings: list[Reading], now: datetime, days: int) -> list[Reading]:
    """Readings in the half-open window (now - days, now]."""
    start = now - timedelta(days=days)
    return [r for r in readings if start < r.timestamp <= now]


def aggregate_daily(readings: list[Reading]) -> list[DailyAggregate]:
    """Sum readings per (building, calendar date), ordered by building then date."""
    energy: dict[tuple, float] = defaultdict(float)
    water: dict[tuple, float] = defaultdict(float)
    for r in readings:
        key = (r.building_id, r.timestamp.date())
        energy[key] += r.energy
        water[key] += r.water

    return [
        DailyAggregate(building_id=b, date=d, energy_sum=energy[(b, d)], water_sum=water[(b, d)])
        for b, d in sorted(energy)
    ]


def group_by_building(rows: list[DailyAggregate]) -> dict[str, list[DailyAggregate]]:
    """Group daily rows per building, each group sorted by date."""
    grouped: dict[str, list[DailyAggregate]] = defaultdict(list)
    for row in rows:
        grouped[row.building_id].append(row)
    return {b: sorted(group, key=lambda r: r.date) for b, group in grouped.items()}
