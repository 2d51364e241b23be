"""Feature engineering - daily aggregation, calendar features, vector building."""

from .calendar import FIXED_HOLIDAYS, build_calendar_features, day_of_week, is_holiday, is_weekend, season
from .daily import aggregate_daily, group_by_building, shift_readings, shift_years, trailing_window
from .vector_builder import (
    MIN_DAYS_PER_BUILDING,
    build_features,
    build_latest_feature,
    build_training_data,
)

__all__ = [
    "FIXED_HOLIDAYS",
    "MIN_DAYS_PER_BUILDING",
    "aggregate_daily",
    "build_calendar_features",
    "build_features",
    "build_latest_feature",
    "build_training_data",
    "day_of_week",
    "group_by_building",
    "is_holiday",
    "is_weekend",
    "season",
    "shift_readings",
    "shift_years",
    "trailing_window",
]
