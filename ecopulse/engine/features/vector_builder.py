"""Feature vector construction from per-building daily series.

One builder serves both call sites: offline training emits a vector for every
day of a building's history, the online forecast cycle asks only for the
vector of the latest day in its trailing window.
"""

from collections import deque

from ecopulse.engine.features.calendar import build_calendar_features
from ecopulse.engine.features.daily import group_by_building
from ecopulse.engine.schema import DailyAggregate, FeatureVector

MIN_DAYS_PER_BUILDING = 10
ROLLING_WINDOW_DAYS = 7


class _RollingMean:
    """Right-aligned mean over at most ``size`` recent values."""

    def __init__(self, size: int = ROLLING_WINDOW_DAYS):
        self.size = size
        self._values: deque[float] = deque()
        self._sum = 0.0

    def push(self, value: float) -> float:
        self._values.append(value)
        self._sum += value
        if len(self._values) > self.size:
            self._sum -= self._values.popleft()
        return self._sum / len(self._values)


def build_features(
    daily_series: list[DailyAggregate],
    latest_only: bool = False,
    min_days: int = MIN_DAYS_PER_BUILDING,
) -> list[FeatureVector]:
    """Build feature vectors for one building's date-ordered daily series.

    Args:
        daily_series: Daily totals for a single building, strictly ordered by
            date with no duplicates. The builder does not sort or merge.
        latest_only: Return only the vector for the last day.
        min_days: Series shorter than this yield no vectors.

    Returns:
        One FeatureVector per input day in input order, or just the last one.
    """
    if len(daily_series) < min_days:
        return []

    energy_mean = _RollingMean()
    water_mean = _RollingMean()
    prev: DailyAggregate | None = None
    vectors = []

    for row in daily_series:
        avg_energy = energy_mean.push(row.energy_sum)
        avg_water = water_mean.push(row.water_sum)
        # First day has no predecessor: fall back to its own totals
        basis = prev or row

        vectors.append(
            FeatureVector(
                building_id=row.building_id,
                date=row.date,
                **build_calendar_features(row.date),
                prev_day_energy=basis.energy_sum,
                prev_day_water=basis.water_sum,
                seven_day_avg_energy=avg_energy,
                seven_day_avg_water=avg_water,
            )
        )
        prev = row

    return vectors[-1:] if latest_only else vectors


def build_latest_feature(daily_series: list[DailyAggregate], min_days: int = 1) -> FeatureVector | None:
    """Feature vector for the last day of a trailing window, or None if too short."""
    vectors = build_features(daily_series, latest_only=True, min_days=min_days)
    return vectors[0] if vectors else None


def build_training_data(
    daily_rows: list[DailyAggregate],
    min_days: int = MIN_DAYS_PER_BUILDING,
) -> tuple[list[FeatureVector], dict[str, list[float]]]:
    """Build feature vectors and aligned targets from unordered daily rows.

    Rows are grouped per building and sorted by date; buildings with fewer
    than ``min_days`` days are dropped.

    Returns (vectors, {"energy": [...], "water": [...]}).
    """
    vectors: list[FeatureVector] = []
    targets: dict[str, list[float]] = {"energy": [], "water": []}

    for building_id, series in sorted(group_by_building(daily_rows).items()):
        for row, fv in zip(series, build_features(series, min_days=min_days)):
            vectors.append(fv)
            targets["energy"].append(row.energy_sum)
            targets["water"].append(row.water_sum)

    return vectors, targets
