"""Forecast predictors - trained-model backed or naive trailing mean.

The variant is picked once per metric at startup by ``load_predictor`` and
kept for the lifetime of the process. There is no online retraining.
"""

from __future__ import annotations

import logging
import statistics
from abc import ABC, abstractmethod

import numpy as np

from ecopulse.engine.schema import DailyAggregate, FeatureVector
from ecopulse.engine.storage.model_io import ModelIO, model_name
from ecopulse.shared.errors import ModelUnavailableError

logger = logging.getLogger(__name__)

PREDICTION_DECIMALS = 3


class Predictor(ABC):
    """Single ``predict`` capability over a feature vector and its trailing window."""

    kind: str = "base"

    def __init__(self, metric: str):
        self.metric = metric

    @abstractmethod
    def _predict(self, feature: FeatureVector, window: list[DailyAggregate]) -> float: ...

    def predict(self, feature: FeatureVector, window: list[DailyAggregate]) -> float:
        """Predict next-day consumption, rounded to 3 decimals."""
        return round(float(self._predict(feature, window)), PREDICTION_DECIMALS)

    def __repr__(self):
        return f"{type(self).__name__}(metric={self.metric!r})"


class ModelPredictor(Predictor):
    """Delegates to a trained pipeline that encodes the building id itself."""

    kind = "model"

    def __init__(self, metric: str, model, metadata: dict | None = None):
        super().__init__(metric)
        self.model = model
        self.metadata = metadata or {}

    def _predict(self, feature, window):
        X = np.array([feature.model_row()], dtype=object)
        return self.model.predict(X)[0]


class FallbackPredictor(Predictor):
    """Mean of the whole trailing window's daily totals; feature fields are ignored."""

    kind = "fallback"

    def _predict(self, feature, window):
        if not window:
            raise ValueError("fallback prediction needs at least one daily total")
        return statistics.fmean(row.total(self.metric) for row in window)


def load_predictor(metric: str, model_io: ModelIO) -> Predictor:
    """Pick the predictor for a metric: trained model if loadable, else fallback."""
    name = model_name(metric)
    try:
        model, metadata = model_io.load_model(name)
    except ModelUnavailableError as e:
        logger.warning(f"{metric}: {e}; using fallback mean predictor")
        return FallbackPredictor(metric)

    if model is None:
        logger.warning(f"{metric}: no trained model at {model_io.path_for(name)}; using fallback mean predictor")
        return FallbackPredictor(metric)

    if not callable(getattr(model, "predict", None)):
        kind = type(model).__name__
        logger.warning(f"{metric}: {name} is a {kind}, not a regressor; using fallback mean predictor")
        return FallbackPredictor(metric)

    logger.info(f"{metric}: loaded trained model {name}")
    return ModelPredictor(metric, model, metadata)


def load_predictors(model_io: ModelIO, metrics=("energy", "water")) -> dict[str, Predictor]:
    """Select one predictor per metric."""
    return {metric: load_predictor(metric, model_io) for metric in metrics}
