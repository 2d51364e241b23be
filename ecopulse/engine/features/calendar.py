"""Calendar features - day of week, weekend, season and fixed holidays."""

from datetime import date

# Fixed (month, day) holidays, independent of year.
FIXED_HOLIDAYS: frozenset[tuple[int, int]] = frozenset(
    {(1, 1), (4, 23), (5, 1), (5, 19), (8, 30), (10, 29)}
)

_SEASON_BY_MONTH = {
    12: 1, 1: 1, 2: 1,
    3: 2, 4: 2, 5: 2,
    6: 3, 7: 3, 8: 3,
    9: 4, 10: 4, 11: 4,
}


def day_of_week(d: date) -> int:
    """Day of week with Sunday=0 .. Saturday=6."""
    return (d.weekday() + 1) % 7


def is_weekend(d: date) -> bool:
    return day_of_week(d) in (0, 6)


def is_holiday(d: date) -> bool:
    return (d.month, d.day) in FIXED_HOLIDAYS


def season(month: int) -> int:
    """Meteorological season: 1=winter, 2=spring, 3=summer, 4=autumn."""
    if month not in _SEASON_BY_MONTH:
        raise ValueError(f"month must be in 1..12, got {month}")
    return _SEASON_BY_MONTH[month]


def build_calendar_features(d: date) -> dict[str, int]:
    """All calendar features for a single date."""
    return {
        "month": d.month,
        "day_of_week": day_of_week(d),
        "is_weekend": 1 if is_weekend(d) else 0,
        "is_holiday": 1 if is_holiday(d) else 0,
        "season": season(d.month),
    }
