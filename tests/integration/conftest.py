"""Shared fixtures for integration tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def notifier():
    """Alert sink that records every notify call."""
    n = MagicMock()
    n.notify = AsyncMock(return_value=True)
    return n
