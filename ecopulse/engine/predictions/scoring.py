"""Forecast accuracy scoring - RMSE and MAPE over forecast/actual pairs."""

import math

from ecopulse.engine.schema import METRICS, AccuracyMetrics, ForecastActual


def rmse(forecast: list[float], actual: list[float]) -> float:
    """Root mean squared error."""
    if len(forecast) != len(actual) or not forecast:
        raise ValueError("rmse needs two non-empty sequences of equal length")
    return math.sqrt(sum((f - a) ** 2 for f, a in zip(forecast, actual)) / len(forecast))


def mape(forecast: list[float], actual: list[float]) -> float:
    """Mean absolute percentage error, in percent.

    An actual value of exactly 0 is replaced by 1 in the divisor, so the
    term degrades to the absolute error instead of dividing by zero.
    """
    if len(forecast) != len(actual) or not forecast:
        raise ValueError("mape needs two non-empty sequences of equal length")
    terms = [abs(a - f) / (a if a != 0 else 1) for f, a in zip(forecast, actual)]
    return sum(terms) / len(terms) * 100


def _pairs(rows: list[ForecastActual], metric: str) -> tuple[list[float], list[float]]:
    if metric == "energy":
        return [r.forecast.predicted_energy for r in rows], [r.actual.energy_sum for r in rows]
    return [r.forecast.predicted_water for r in rows], [r.actual.water_sum for r in rows]


def score_accuracy(rows: list[ForecastActual]) -> list[AccuracyMetrics]:
    """RMSE and MAPE per metric over one consistent join. Empty input -> []."""
    if not rows:
        return []
    results = []
    for metric in METRICS:
        forecast, actual = _pairs(rows, metric)
        results.append(AccuracyMetrics(metric=metric, rmse=rmse(forecast, actual), mape=mape(forecast, actual)))
    return results
