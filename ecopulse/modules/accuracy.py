"""Accuracy Module - RMSE/MAPE of past forecasts against realized consumption."""

from datetime import date, timedelta

from ecopulse.engine.config import AccuracyConfig
from ecopulse.engine.predictions.scoring import score_accuracy
from ecopulse.engine.schema import AccuracyMetrics
from ecopulse.hub.core import ForecastHub, Module
from ecopulse.hub.metrics import MODEL_MAPE, MODEL_RMSE


class AccuracyModule(Module):
    """Recurring forecast accuracy evaluation, independent of the forecast cycle."""

    def __init__(self, hub: ForecastHub, config: AccuracyConfig | None = None):
        super().__init__("accuracy", hub)
        self.config = config or AccuracyConfig()

    async def schedule(self):
        await self.hub.schedule_task(
            task_id="accuracy_evaluator",
            coro=self.evaluate,
            interval=timedelta(hours=self.config.interval_hours),
            run_immediately=True,
        )

    async def evaluate(self, start: date | None = None, end: date | None = None) -> list[AccuracyMetrics]:
        """Score every forecast that has realized data and publish the gauges.

        All four values come from one join; nothing is published when the
        join is empty, so the previous values stay exposed.
        """
        rows = await self.hub.store.fetch_forecasts_with_realized(start, end)
        if not rows:
            self.logger.warning("No forecast/realized pairs to compare")
            return []

        results = score_accuracy(rows)
        for m in results:
            self.hub.metrics.set_gauge(MODEL_RMSE, {"metric": m.metric}, m.rmse)
            self.hub.metrics.set_gauge(MODEL_MAPE, {"metric": m.metric}, m.mape)
            self.logger.info(f"RMSE({m.metric})={m.rmse:.3f}, MAPE({m.metric})={m.mape:.2f}% over {len(rows)} rows")
        return results
