"""Shared engine-hub record types.

The store, the feature pipeline, the forecast cycle and the accuracy
evaluator all exchange these records. All schema changes MUST be made here.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

# Fixed column order of the numeric part of a feature vector. The trained
# pipeline sees ["building_id", *FEATURE_COLUMNS].
FEATURE_COLUMNS: list[str] = [
    "month",
    "day_of_week",
    "is_weekend",
    "is_holiday",
    "season",
    "prev_day_energy",
    "prev_day_water",
    "seven_day_avg_energy",
    "seven_day_avg_water",
]

METRICS: tuple[str, ...] = ("energy", "water")


@dataclass(frozen=True)
class Reading:
    """One consumption sample for a building."""
    building_id: str
    timestamp: datetime
    energy: float
    water: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "building_id": self.building_id,
            "timestamp": self.timestamp.isoformat(),
            "energy": self.energy,
            "water": self.water,
        }


@dataclass(frozen=True)
class DailyAggregate:
    """Sum of all readings for one building on one calendar date."""
    building_id: str
    date: date
    energy_sum: float
    water_sum: float

    def total(self, metric: str) -> float:
        return self.energy_sum if metric == "energy" else self.water_sum


@dataclass(frozen=True)
class FeatureVector:
    building_id: str
    date: date
    month: int
    day_of_week: int
    is_weekend: int
    is_holiday: int
    season: int
    prev_day_energy: float
    prev_day_water: float
    seven_day_avg_energy: float
    seven_day_avg_water: float

    def numeric_row(self) -> list[float]:
        """Numeric feature values in FEATURE_COLUMNS order."""
        return [float(getattr(self, name)) for name in FEATURE_COLUMNS]

    def model_row(self) -> list[Any]:
        """Row consumed by trained pipelines: building id followed by numeric features."""
        return [self.building_id, *self.numeric_row()]


@dataclass(frozen=True)
class Forecast:
    """Next-day prediction for one building. Never updated after creation."""
    building_id: str
    date: date
    predicted_energy: float
    predicted_water: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "building_id": self.building_id,
            "date": self.date.isoformat(),
            "predicted_energy": self.predicted_energy,
            "predicted_water": self.predicted_water,
        }


@dataclass(frozen=True)
class ForecastActual:
    """A forecast joined with the realized daily totals for the same building and date."""
    forecast: Forecast
    actual: DailyAggregate


@dataclass(frozen=True)
class AccuracyMetrics:
    metric: str  # "energy" | "water"
    rmse: float
    mape: float
