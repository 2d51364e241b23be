"""Metrics sink - Prometheus gauges injected into the forecast and accuracy modules.

Each sink owns its own ``CollectorRegistry`` so tests and multiple hubs in one
process never collide on metric names.
"""

from __future__ import annotations

import logging
from typing import Protocol

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Gauge, generate_latest

logger = logging.getLogger(__name__)

ENERGY_FORECAST_VALUE = "ecopulse_energy_forecast_value"
WATER_FORECAST_VALUE = "ecopulse_water_forecast_value"
ENERGY_ALERT = "ecopulse_energy_alert"
WATER_ALERT = "ecopulse_water_alert"
MODEL_RMSE = "ecopulse_model_rmse"
MODEL_MAPE = "ecopulse_model_mape"
ENERGY_KWH = "ecopulse_energy_kwh"
WATER_M3 = "ecopulse_water_m3"

GAUGE_HELP = {
    ENERGY_FORECAST_VALUE: "Predicted energy consumption (kWh)",
    WATER_FORECAST_VALUE: "Predicted water consumption (m3)",
    ENERGY_ALERT: "1 if energy forecast exceeds threshold",
    WATER_ALERT: "1 if water forecast exceeds threshold",
    MODEL_RMSE: "Root Mean Square Error",
    MODEL_MAPE: "Mean Absolute Percentage Error",
    ENERGY_KWH: "Total ingested energy consumption (kWh)",
    WATER_M3: "Total ingested water consumption (m3)",
}


class MetricsSink(Protocol):
    def set_gauge(self, name: str, labels: dict[str, str], value: float) -> None: ...

    def inc_gauge(self, name: str, labels: dict[str, str], amount: float = 1.0) -> None: ...


class PrometheusMetricsSink:
    """Last-write-wins labeled gauges backed by prometheus_client."""

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self._gauges: dict[str, tuple[Gauge, tuple[str, ...]]] = {}  # name -> (gauge, label names)

    def _gauge(self, name: str, label_names: tuple[str, ...]) -> Gauge:
        entry = self._gauges.get(name)
        if entry is None:
            gauge = Gauge(name, GAUGE_HELP.get(name, name), labelnames=label_names, registry=self.registry)
            self._gauges[name] = (gauge, label_names)
            return gauge
        gauge, known = entry
        if known != label_names:
            raise ValueError(f"Gauge {name} uses labels {known}, got {label_names}")
        return gauge

    def set_gauge(self, name: str, labels: dict[str, str], value: float) -> None:
        label_names = tuple(sorted(labels))
        gauge = self._gauge(name, label_names)
        if label_names:
            gauge.labels(**labels).set(value)
        else:
            gauge.set(value)

    def inc_gauge(self, name: str, labels: dict[str, str], amount: float = 1.0) -> None:
        label_names = tuple(sorted(labels))
        gauge = self._gauge(name, label_names)
        if label_names:
            gauge.labels(**labels).inc(amount)
        else:
            gauge.inc(amount)

    def get_value(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        """Current sample value, or None if the series has never been written."""
        return self.registry.get_sample_value(name, labels or {})

    def render(self) -> bytes:
        """Prometheus text exposition of every gauge in this sink."""
        return generate_latest(self.registry)
