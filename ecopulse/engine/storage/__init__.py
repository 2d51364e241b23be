"""Model artifact persistence."""

from .model_io import ModelIO, model_name

__all__ = ["ModelIO", "model_name"]
