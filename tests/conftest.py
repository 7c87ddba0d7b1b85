"""Pytest configuration for global fixtures and logging setup."""
from __future__ import annotations

import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

os.environ["ANTHROPIC_API_KEY"] = os.environ.get("ANTHROPIC_API_KEY") or "test-anthropic-key"

from pulse.logging_config import configure_logging

configure_logging()

from pulse.main import app
from pulse.services.query_analytics import QueryAnalytics

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="session")
def test_client() -> TestClient:
    """Provide a FastAPI test client."""

    return TestClient(app)


@pytest.fixture()
def fresh_analytics() -> QueryAnalytics:
    """Swap in an empty analytics buffer for the duration of a test."""

    previous = app.state.query_analytics
    app.state.query_analytics = QueryAnalytics(capacity=50)
    yield app.state.query_analytics
    app.state.query_analytics = previous


@pytest.fixture(scope="session")
def plan_path() -> Path:
    """Path to the small master plan used by router tests."""

    return FIXTURES_DIR / "master_plan.md"


@pytest.fixture(scope="session")
def plan_text(plan_path: Path) -> str:
    return plan_path.read_text(encoding="utf-8")
