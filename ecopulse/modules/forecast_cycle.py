"""Forecast Cycle Module - next-day consumption forecasts per building.

Every cycle:
- Enumerates buildings from the reading store
- Builds the latest feature vector from each building's trailing window
- Predicts energy and water, persists a forecast dated tomorrow
- Exports forecast/alert gauges and notifies when a threshold is exceeded

A failure for one building is logged and the cycle moves on to the next.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from ecopulse.engine.config import ForecastConfig
from ecopulse.engine.features.daily import aggregate_daily, shift_readings, trailing_window
from ecopulse.engine.features.vector_builder import build_latest_feature
from ecopulse.engine.predictions.predictor import Predictor
from ecopulse.engine.schema import Forecast
from ecopulse.hub.core import ForecastHub, Module
from ecopulse.hub.metrics import ENERGY_ALERT, ENERGY_FORECAST_VALUE, WATER_ALERT, WATER_FORECAST_VALUE
from ecopulse.shared.errors import InsufficientDataError, NotificationError


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ForecastCycleModule(Module):
    """Recurring per-building forecast cycle."""

    def __init__(
        self,
        hub: ForecastHub,
        predictors: dict[str, Predictor],
        notifier,
        config: ForecastConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize forecast cycle.

        Args:
            hub: ForecastHub instance (store, metrics sink, running flag)
            predictors: One predictor per metric ("energy", "water"), fixed for the process lifetime
            notifier: Alert sink with ``async notify(building_id, energy, water)``
            config: Cadence, window and threshold settings
            clock: Source of the cycle's current time (UTC)
        """
        super().__init__("forecast_cycle", hub)
        self.predictors = predictors
        self.notifier = notifier
        self.config = config or ForecastConfig()
        self.clock = clock

    async def initialize(self):
        for metric, predictor in sorted(self.predictors.items()):
            self.logger.info(f"{metric} predictor: {predictor.kind}")

    async def schedule(self):
        """Register the recurring cycle with the hub."""
        await self.hub.schedule_task(
            task_id="forecast_cycle",
            coro=self.run_cycle,
            interval=timedelta(hours=self.config.interval_hours),
            run_immediately=True,
        )

    async def run_cycle(self, now: datetime | None = None) -> dict[str, Any]:
        """Run one forecast pass over every known building.

        Returns:
            Summary with forecasted, skipped, failed and alerted building ids.
            An "error" key is added only when the building list cannot be read.
        """
        now = now or self.clock()
        summary: dict[str, Any] = {"forecasted": [], "skipped": [], "failed": [], "alerts": []}

        try:
            buildings = await self.hub.store.list_building_ids()
        except Exception as e:
            # Retried at the next scheduled cycle, not immediately
            self.logger.error(f"Cannot list buildings, skipping cycle: {e}")
            summary["error"] = str(e)
            return summary

        for building_id in sorted(buildings):
            if not self.hub.is_running():
                self.logger.info("Shutdown requested, stopping forecast cycle early")
                break
            unit = asyncio.ensure_future(self.forecast_building(building_id, now))
            try:
                forecast, alerted = await asyncio.shield(unit)
            except asyncio.CancelledError:
                # Cancelled after the shutdown grace: finish this building, then stop
                self.logger.info(f"Cancel requested, finishing {building_id} first")
                await asyncio.wait({unit})
                if unit.exception() is not None:
                    self.logger.error(f"Forecast failed for {building_id}: {unit.exception()}")
                raise
            except InsufficientDataError as e:
                self.logger.warning(f"{e}. Skipping.")
                summary["skipped"].append(building_id)
                continue
            except Exception as e:
                self.logger.error(f"Forecast failed for {building_id}: {e}")
                summary["failed"].append(building_id)
                continue

            summary["forecasted"].append(building_id)
            if alerted:
                summary["alerts"].append(building_id)

        self.logger.info(
            f"Forecast cycle done: {len(summary['forecasted'])} forecasted, "
            f"{len(summary['skipped'])} skipped, {len(summary['failed'])} failed, "
            f"{len(summary['alerts'])} alerts"
        )
        return summary

    async def forecast_building(self, building_id: str, now: datetime) -> tuple[Forecast, bool]:
        """Forecast tomorrow's consumption for one building.

        Raises:
            InsufficientDataError: fewer than ``min_readings`` readings in the window.
        """
        cfg = self.config
        # With a date shift the stored timestamps are not comparable to now, so fetch everything
        since = None if cfg.date_shift_years else now - timedelta(days=cfg.window_days)
        readings = await self.hub.store.fetch_readings(building_id, since=since)
        readings = trailing_window(shift_readings(readings, cfg.date_shift_years), now, cfg.window_days)

        if len(readings) < cfg.min_readings:
            raise InsufficientDataError(building_id, len(readings), cfg.min_readings)

        daily = aggregate_daily(readings)
        feature = build_latest_feature(daily)

        forecast = Forecast(
            building_id=building_id,
            date=now.date() + timedelta(days=1),
            predicted_energy=self.predictors["energy"].predict(feature, daily),
            predicted_water=self.predictors["water"].predict(feature, daily),
        )
        await self.hub.store.insert_forecast(forecast)

        energy_alert = forecast.predicted_energy > cfg.energy_threshold
        water_alert = forecast.predicted_water > cfg.water_threshold
        alerted = energy_alert or water_alert
        if alerted:
            await self._notify(forecast)

        labels = {"building": building_id}
        self.hub.metrics.set_gauge(ENERGY_FORECAST_VALUE, labels, forecast.predicted_energy)
        self.hub.metrics.set_gauge(WATER_FORECAST_VALUE, labels, forecast.predicted_water)
        self.hub.metrics.set_gauge(ENERGY_ALERT, labels, 1 if energy_alert else 0)
        self.hub.metrics.set_gauge(WATER_ALERT, labels, 1 if water_alert else 0)

        self.logger.info(
            f"Forecast ({building_id}) -> Energy={forecast.predicted_energy} kWh, "
            f"Water={forecast.predicted_water} m3" + (" [ALERT]" if alerted else "")
        )
        return forecast, alerted

    async def _notify(self, forecast: Forecast):
        """Deliver an alert; failures never roll back the persisted forecast."""
        try:
            await self.notifier.notify(forecast.building_id, forecast.predicted_energy, forecast.predicted_water)
        except NotificationError as e:
            self.logger.warning(f"Alert for {forecast.building_id} not delivered: {e}")
        except Exception as e:
            self.logger.error(f"Notifier error for {forecast.building_id}: {e}")
