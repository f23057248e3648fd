"""Shared test fixtures for update-reminder."""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from observability import metrics  # noqa: E402


@pytest.fixture(autouse=True)
def reset_metrics():
    """Metrics is a module singleton; isolate counters per test."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def state_path(tmp_path):
    return tmp_path / "reminder" / "state.json"
