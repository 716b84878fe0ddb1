"""Shared pytest fixtures for KPI forecast tests."""

import pytest
import structlog

from kpi_forecast.core.config import get_settings


@pytest.fixture(autouse=True)
def reset_settings_and_logging():
    """Give every test fresh settings and default structlog configuration."""
    get_settings.cache_clear()
    structlog.reset_defaults()
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()
