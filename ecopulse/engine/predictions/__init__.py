"""Predictions - predictor selection and accuracy scoring."""

from .predictor import FallbackPredictor, ModelPredictor, Predictor, load_predictor, load_predictors
from .scoring import mape, rmse, score_accuracy

__all__ = [
    "FallbackPredictor",
    "ModelPredictor",
    "Predictor",
    "load_predictor",
    "load_predictors",
    "mape",
    "rmse",
    "score_accuracy",
]
