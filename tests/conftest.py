"""Pytest configuration and shared fixtures for the clinic dashboard."""

from datetime import datetime, UTC
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from clinic_dashboard.api.v1.dashboard import get_settings
from clinic_dashboard.core.config import Settings
from clinic_dashboard.main import app
from clinic_dashboard.schemas import DashboardConfig, Weekday, WorkingHoursConfig

WEEKDAYS = frozenset({
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
})


@pytest.fixture
def reference_now() -> datetime:
    """Wednesday 2025-01-15 10:00 UTC; its ISO week runs Monday 13th to Sunday 19th."""
    return datetime(2025, 1, 15, 10, 0, tzinfo=UTC)


@pytest.fixture
def working_hours() -> WorkingHoursConfig:
    """08:00-18:00, 30 minute slots, Monday to Friday."""
    return WorkingHoursConfig(
        start_hour=8,
        end_hour=18,
        slot_duration_minutes=30,
        work_days=WEEKDAYS,
    )


@pytest.fixture
def dashboard_config(working_hours: WorkingHoursConfig) -> DashboardConfig:
    """Default clinic configuration with a 350 average ticket."""
    return DashboardConfig(
        working_hours=working_hours,
        average_ticket=350.0,
        occupancy_target=85,
    )


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None, clinic_timezone="UTC", prometheus_enabled=False)


@pytest.fixture
def test_client(test_settings: Settings) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "dashboard: Dashboard metrics tests")
