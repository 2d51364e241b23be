"""Configuration dataclasses for the ecopulse engine and hub.

Every sub-config has defaults suitable for local development and a
``from_env`` classmethod for production use.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    return float(raw) if raw not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    return int(raw) if raw not in (None, "") else default


@dataclass
class PathConfig:
    """Data directory paths. Single source of truth for file locations."""
    data_dir: Path = field(default_factory=lambda: Path.home() / "ecopulse")

    @property
    def models_dir(self) -> Path:
        return self.data_dir / "models"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "ecopulse.db"

    def ensure_dirs(self):
        """Create all required directories."""
        for d in [self.data_dir, self.models_dir]:
            d.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls):
        data_dir = os.environ.get("ECOPULSE_DATA_DIR")
        return cls(data_dir=Path(data_dir)) if data_dir else cls()


@dataclass
class StoreConfig:
    """Reading store settings."""
    db_path: str = ""
    query_timeout: float = 300.0  # bulk queries may scan the full history

    @classmethod
    def from_env(cls, paths: PathConfig | None = None):
        paths = paths or PathConfig.from_env()
        return cls(
            db_path=os.environ.get("ECOPULSE_DB_PATH", str(paths.db_path)),
            query_timeout=_env_float("ECOPULSE_QUERY_TIMEOUT", cls.query_timeout),
        )


@dataclass
class ModelConfig:
    """sklearn model hyperparameters."""
    n_estimators: int = 100
    max_depth: int = 4
    learning_rate: float = 0.1
    subsample: float = 0.8
    min_samples_ratio: int = 20  # min_samples_leaf = max(3, n // this)
    min_training_samples: int = 10  # same floor as MIN_DAYS_PER_BUILDING
    validation_split: float = 0.8
    random_state: int = 7


@dataclass
class ForecastConfig:
    """Forecast cycle cadence, windowing and alert thresholds."""
    interval_hours: float = 6.0
    window_days: int = 30
    min_readings: int = 10
    energy_threshold: float = 80.0
    water_threshold: float = 12.0
    date_shift_years: int = 0

    @classmethod
    def from_env(cls):
        return cls(
            interval_hours=_env_float("ECOPULSE_FORECAST_INTERVAL_HOURS", cls.interval_hours),
            window_days=_env_int("ECOPULSE_WINDOW_DAYS", cls.window_days),
            min_readings=_env_int("ECOPULSE_MIN_READINGS", cls.min_readings),
            energy_threshold=_env_float("ECOPULSE_ENERGY_THRESHOLD", cls.energy_threshold),
            water_threshold=_env_float("ECOPULSE_WATER_THRESHOLD", cls.water_threshold),
            date_shift_years=_env_int("ECOPULSE_DATE_SHIFT_YEARS", cls.date_shift_years),
        )


@dataclass
class AccuracyConfig:
    """Accuracy evaluator cadence."""
    interval_hours: float = 12.0

    @classmethod
    def from_env(cls):
        return cls(interval_hours=_env_float("ECOPULSE_ACCURACY_INTERVAL_HOURS", cls.interval_hours))


@dataclass
class SmtpConfig:
    """SMTP alert delivery settings. Email alerts are disabled without a user."""
    user: str = ""
    password: str = ""
    to: str = ""
    host: str = "smtp.gmail.com"
    port: int = 587
    timeout: float = 20.0
    dashboard_url: str = "http://localhost:3000/d/ecopulse-dashboard?orgId=1"

    @property
    def enabled(self) -> bool:
        return bool(self.user and self.password and self.to)

    @classmethod
    def from_env(cls):
        return cls(
            user=os.environ.get("EP_SMTP_USER", ""),
            password=os.environ.get("EP_SMTP_PASS", ""),
            to=os.environ.get("EP_SMTP_TO", ""),
            host=os.environ.get("EP_SMTP_HOST", cls.host),
            port=_env_int("EP_SMTP_PORT", cls.port),
            dashboard_url=os.environ.get("EP_DASHBOARD_URL", cls.dashboard_url),
        )


@dataclass
class TelegramConfig:
    """Telegram alert delivery settings."""
    token: str = ""
    chat_id: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.chat_id)

    @classmethod
    def from_env(cls):
        return cls(
            token=os.environ.get("TELEGRAM_BOT_TOKEN", ""),
            chat_id=os.environ.get("TELEGRAM_CHAT_ID", ""),
        )


@dataclass
class ApiConfig:
    """HTTP surface settings."""
    host: str = "0.0.0.0"
    port: int = 5080

    @classmethod
    def from_env(cls):
        return cls(
            host=os.environ.get("ECOPULSE_API_HOST", cls.host),
            port=_env_int("ECOPULSE_API_PORT", cls.port),
        )


@dataclass
class AppConfig:
    """Top-level config composing all sub-configs."""
    paths: PathConfig = field(default_factory=PathConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    accuracy: AccuracyConfig = field(default_factory=AccuracyConfig)
    smtp: SmtpConfig = field(default_factory=SmtpConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    api: ApiConfig = field(default_factory=ApiConfig)

    def __post_init__(self):
        if not self.store.db_path:
            self.store.db_path = str(self.paths.db_path)

    @classmethod
    def from_env(cls):
        """Create config from environment variables (for production use)."""
        paths = PathConfig.from_env()
        return cls(
            paths=paths,
            store=StoreConfig.from_env(paths),
            model=ModelConfig(),
            forecast=ForecastConfig.from_env(),
            accuracy=AccuracyConfig.from_env(),
            smtp=SmtpConfig.from_env(),
            telegram=TelegramConfig.from_env(),
            api=ApiConfig.from_env(),
        )
