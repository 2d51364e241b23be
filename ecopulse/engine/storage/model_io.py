"""Model serialization - pickle save/load for trained sklearn pipelines."""

import pickle
from pathlib import Path

from ecopulse.shared.errors import ModelUnavailableError


def model_name(metric: str) -> str:
    """Artifact name for a metric's forecast model (e.g. ``energy_forecast_model``)."""
    return f"{metric}_forecast_model"


class ModelIO:
    """Pickle-based model persistence."""

    def __init__(self, models_dir: Path):
        self.models_dir = Path(models_dir)

    def path_for(self, name: str) -> Path:
        return self.models_dir / f"{name}.pkl"

    def save_model(self, model, name: str, metadata: dict | None = None) -> Path:
        """Save a trained model to disk."""
        self.models_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)
        with open(path, "wb") as f:
            pickle.dump({"model": model, "metadata": metadata or {}}, f)
        return path

    def load_model(self, name: str):
        """Load a saved model. Returns (model, metadata) or (None, None) if not found.

        Raises:
            ModelUnavailableError: the file exists but cannot be unpickled.
        """
        path = self.path_for(name)
        if not path.is_file():
            return None, None
        try:
            with open(path, "rb") as f:
                data = pickle.load(f)
        except Exception as e:
            raise ModelUnavailableError(f"Cannot load model {path}: {e}") from e
        if isinstance(data, dict) and "model" in data:
            return data["model"], data.get("metadata", {})
        # Bare model object without metadata
        return data, {}
