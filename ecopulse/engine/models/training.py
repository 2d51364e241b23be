"""Offline model training for next-day energy and water forecasts.

Each metric gets its own pipeline: one-hot building id, min-max scaled
numeric features, GradientBoosting regressor. The saved pipeline consumes
``FeatureVector.model_row()`` rows directly.
"""

import json
import logging
import os
from dataclasses import replace
from datetime import datetime

import numpy as np
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import GradientBoostingRegressor
from sklearn.metrics import mean_absolute_error, r2_score
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import MinMaxScaler, OneHotEncoder

from ecopulse.engine.config import AppConfig, ModelConfig
from ecopulse.engine.features.daily import shift_years
from ecopulse.engine.features.vector_builder import build_training_data
from ecopulse.engine.schema import FEATURE_COLUMNS, METRICS, DailyAggregate
from ecopulse.engine.storage.model_io import ModelIO, model_name

logger = logging.getLogger(__name__)


def build_pipeline(n_train: int, config: ModelConfig | None = None) -> Pipeline:
    """Unfitted preprocessing + regressor pipeline."""
    if config is None:
        config = ModelConfig()

    numeric_idx = list(range(1, len(FEATURE_COLUMNS) + 1))
    prep = ColumnTransformer(
        [
            ("building", OneHotEncoder(handle_unknown="ignore"), [0]),
            ("numeric", MinMaxScaler(), numeric_idx),
        ]
    )
    model = GradientBoostingRegressor(
        n_estimators=config.n_estimators,
        max_depth=config.max_depth,
        learning_rate=config.learning_rate,
        min_samples_leaf=max(3, n_train // config.min_samples_ratio),
        subsample=config.subsample,
        random_state=config.random_state,
    )
    return Pipeline([("prep", prep), ("model", model)])


def train_metric_model(metric: str, X: np.ndarray, y: np.ndarray, config: ModelConfig | None = None):
    """Train one metric's pipeline on chronologically ordered rows.

    Validation metrics come from an 80/20 chronological split; the returned
    pipeline is refit on every row.

    Returns (pipeline, result dict) or (None, {"error": ...}).
    """
    if config is None:
        config = ModelConfig()

    if len(X) < config.min_training_samples:
        return None, {"error": f"insufficient data ({len(X)} samples, need {config.min_training_samples}+)"}

    split = int(len(X) * config.validation_split)
    X_train, X_val = X[:split], X[split:]
    y_train, y_val = y[:split], y[split:]

    validation = build_pipeline(len(X_train), config)
    validation.fit(X_train, y_train)
    y_pred = validation.predict(X_val)
    mae = mean_absolute_error(y_val, y_pred)
    r2 = r2_score(y_val, y_pred) if len(y_val) > 1 else 0.0

    pipeline = build_pipeline(len(X), config)
    pipeline.fit(X, y)

    return pipeline, {
        "metric": metric,
        "mae": round(float(mae), 3),
        "r2": round(float(r2), 4),
        "samples_train": len(X_train),
        "samples_val": len(X_val),
    }


def shift_daily_rows(rows: list[DailyAggregate], years: int) -> list[DailyAggregate]:
    if not years:
        return rows
    return [replace(r, date=shift_years(r.date, years)) for r in rows]


async def train_all_models(store, config: AppConfig | None = None, model_io: ModelIO | None = None) -> dict:
    """Train and save the energy and water forecast models from the reading store.

    Returns training results dict.
    """
    if config is None:
        config = AppConfig()
    if model_io is None:
        model_io = ModelIO(config.paths.models_dir)

    rows = await store.fetch_daily_aggregates()
    if not rows:
        logger.warning("No daily aggregates in store, nothing to train")
        return {"error": "empty query result"}

    rows = shift_daily_rows(rows, config.forecast.date_shift_years)
    vectors, targets = build_training_data(rows)
    if not vectors:
        logger.warning("No building has enough history to train")
        return {"error": "no building with enough history"}

    # Chronological order across buildings so the validation split is a time split
    order = sorted(range(len(vectors)), key=lambda i: (vectors[i].date, vectors[i].building_id))
    X = np.array([vectors[i].model_row() for i in order], dtype=object)

    results = {
        "trained_at": datetime.now().isoformat(),
        "buildings": sorted({fv.building_id for fv in vectors}),
        "models": {},
    }
    for metric in METRICS:
        y = np.array([targets[metric][i] for i in order], dtype=float)
        pipeline, result = train_metric_model(metric, X, y, config.model)
        results["models"][metric] = result
        if pipeline is None:
            logger.warning(f"{metric}: {result['error']}")
            continue
        path = model_io.save_model(pipeline, model_name(metric), metadata=result)
        logger.info(f"{metric}: MAE={result['mae']}, R²={result['r2']} -> {path}")

    os.makedirs(model_io.models_dir, exist_ok=True)
    log_path = model_io.models_dir / "training_log.json"
    with open(log_path, "w") as f:
        json.dump(results, f, indent=2)
    logger.info(f"Training log saved: {log_path}")

    return results
