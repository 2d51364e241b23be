"""Tests for offline model training."""

import json
from datetime import date
from unittest.mock import AsyncMock

import numpy as np
import pytest

from ecopulse.engine.config import AppConfig, ModelConfig, PathConfig
from ecopulse.engine.features.vector_builder import build_latest_feature, build_training_data
from ecopulse.engine.models.training import build_pipeline, shift_daily_rows, train_all_models, train_metric_model
from ecopulse.engine.predictions.predictor import ModelPredictor, load_predictors
from ecopulse.engine.storage.model_io import ModelIO
from tests.synthetic.consumption import synthetic_history

START = date(2025, 1, 6)
BUILDINGS = {"B1": 40.0, "B2": 90.0, "B3": 15.0}


@pytest.fixture
def history():
    return synthetic_history(BUILDINGS, START, days=42)


@pytest.fixture
def config(tmp_path):
    return AppConfig(paths=PathConfig(data_dir=tmp_path), model=ModelConfig(n_estimators=30))


def _store(rows):
    store = AsyncMock()
    store.fetch_daily_aggregates.return_value = rows
    return store


class TestTrainMetricModel:
    def test_insufficient_samples(self):
        X = np.array([["B1"] + [1.0] * 9] * 5, dtype=object)
        pipeline, result = train_metric_model("energy", X, np.ones(5))
        assert pipeline is None
        assert "insufficient data" in result["error"]

    def test_trains_and_reports_validation(self, history):
        vectors, targets = build_training_data(history)
        X = np.array([v.model_row() for v in vectors], dtype=object)
        y = np.array(targets["energy"])

        pipeline, result = train_metric_model("energy", X, y, ModelConfig(n_estimators=30))

        assert pipeline is not None
        assert result["metric"] == "energy"
        assert result["samples_train"] + result["samples_val"] == len(X)
        assert result["samples_train"] == int(len(X) * 0.8)
        assert pipeline.predict(X[:3]).shape == (3,)

    def test_unknown_building_still_predicts(self, history):
        vectors, targets = build_training_data(history)
        X = np.array([v.model_row() for v in vectors], dtype=object)
        pipeline, _ = train_metric_model("water", X, np.array(targets["water"]), ModelConfig(n_estimators=30))

        row = np.array([["NEW"] + vectors[0].numeric_row()], dtype=object)
        assert np.isfinite(pipeline.predict(row)[0])

    def test_pipeline_min_samples_leaf(self):
        pipeline = build_pipeline(200, ModelConfig(min_samples_ratio=20))
        assert pipeline.named_steps["model"].min_samples_leaf == 10


class TestTrainAllModels:
    async def test_saves_both_models(self, history, config):
        results = await train_all_models(_store(history), config)

        assert results["buildings"] == ["B1", "B2", "B3"]
        assert set(results["models"]) == {"energy", "water"}
        model_io = ModelIO(config.paths.models_dir)
        assert model_io.path_for("energy_forecast_model").is_file()
        assert model_io.path_for("water_forecast_model").is_file()

        log = json.loads((config.paths.models_dir / "training_log.json").read_text())
        assert log["models"]["energy"]["metric"] == "energy"

    async def test_trained_models_replace_fallback(self, history, config):
        await train_all_models(_store(history), config)
        predictors = load_predictors(ModelIO(config.paths.models_dir))
        assert all(isinstance(p, ModelPredictor) for p in predictors.values())

        window = [r for r in history if r.building_id == "B2"][-30:]
        feature = build_latest_feature(window)
        energy = predictors["energy"].predict(feature, window)
        assert isinstance(energy, float)
        assert 20.0 < energy < 150.0

    async def test_empty_store(self, config):
        results = await train_all_models(_store([]), config)
        assert results == {"error": "empty query result"}
        assert not ModelIO(config.paths.models_dir).path_for("energy_forecast_model").exists()

    async def test_single_building_at_minimum_history(self, config):
        rows = synthetic_history({"B1": 30.0}, START, days=10)

        results = await train_all_models(_store(rows), config)

        assert results["models"]["energy"]["samples_train"] == 8
        assert results["models"]["water"]["samples_val"] == 2
        predictors = load_predictors(ModelIO(config.paths.models_dir))
        assert {p.kind for p in predictors.values()} == {"model"}

    async def test_no_building_with_enough_history(self, config):
        rows = synthetic_history({"B1": 10.0}, START, days=5)
        results = await train_all_models(_store(rows), config)
        assert results == {"error": "no building with enough history"}


class TestShiftDailyRows:
    def test_shift(self, history):
        shifted = shift_daily_rows(history[:2], 10)
        assert shifted[0].date == date(2035, 1, 6)
        assert shifted[0].energy_sum == history[0].energy_sum

    def test_no_shift_returns_input(self, history):
        assert shift_daily_rows(history, 0) is history
