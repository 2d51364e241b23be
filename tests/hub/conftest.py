"""Shared fixtures for tests/hub/ test suite.

Provides a real ForecastHub over a temp ReadingStore for module tests, and a
mocked hub with a TestClient for API endpoint tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from ecopulse.hub.api import create_api
from ecopulse.hub.core import ForecastHub
from ecopulse.hub.metrics import PrometheusMetricsSink
from ecopulse.shared.reading_store import ReadingStore


@pytest_asyncio.fixture
async def hub(tmp_path):
    """Initialized ForecastHub with a temp store and its own metrics registry."""
    h = ForecastHub(ReadingStore(str(tmp_path / "hub.db")), PrometheusMetricsSink())
    await h.initialize()
    yield h
    await h.shutdown(grace_seconds=0)


@pytest.fixture
def notifier():
    """Alert sink that records every notify call."""
    n = MagicMock()
    n.notify = AsyncMock(return_value=True)
    return n


@pytest.fixture
def api_hub():
    """Mock ForecastHub for API endpoint tests."""
    mock_hub = MagicMock(spec=ForecastHub)
    mock_hub.store = MagicMock()
    mock_hub.store.recent_readings = AsyncMock(return_value=[])
    mock_hub.store.insert_reading = AsyncMock()
    mock_hub.store.fetch_forecasts = AsyncMock(return_value=[])
    mock_hub.metrics = PrometheusMetricsSink()
    mock_hub.status = MagicMock(return_value={"running": True, "uptime_seconds": 1.0, "modules": {}, "tasks": []})
    return mock_hub


@pytest.fixture
def api_client(api_hub):
    """Create a FastAPI TestClient backed by api_hub."""
    return TestClient(create_api(api_hub))
