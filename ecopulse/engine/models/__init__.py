"""ML models - sklearn pipeline training for forecast metrics."""

from ecopulse.engine.models.training import build_pipeline, train_all_models, train_metric_model

__all__ = ["build_pipeline", "train_all_models", "train_metric_model"]
