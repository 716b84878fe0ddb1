"""Test fixtures for forecasting module."""

from collections.abc import Callable, Sequence

import pytest

from kpi_forecast.features.forecasting.schemas import (
    ArimaModelConfig,
    BubblePoint,
    ExponentialSmoothingModelConfig,
    LinearRegressionModelConfig,
    LstmModelConfig,
    Observation,
    SarimaModelConfig,
    ThetaMethodModelConfig,
)


def build_series(
    values: Sequence[float | str | None],
    project_name: str | None = "Apollo",
    kpi_group: str | None = "Quality",
) -> list[Observation]:
    """Wrap raw values into observations with constant metadata."""
    return [
        Observation(value=value, project_name=project_name, kpi_group=kpi_group)
        for value in values
    ]


@pytest.fixture
def make_series() -> Callable[..., list[Observation]]:
    """Factory fixture turning raw values into a historical series."""
    return build_series


@pytest.fixture
def linear_series() -> list[Observation]:
    """Perfect line 1..5; the next value is 6."""
    return build_series([1.0, 2.0, 3.0, 4.0, 5.0])


@pytest.fixture
def constant_series() -> list[Observation]:
    """Ten observations of 10.0."""
    return build_series([10.0] * 10)


@pytest.fixture
def step_trend_series() -> list[Observation]:
    """Evenly stepped series [100, 105, 110, 115, 120]."""
    return build_series([100.0, 105.0, 110.0, 115.0, 120.0])


@pytest.fixture
def seasonal_series() -> list[Observation]:
    """Three cycles of a period-4 pattern."""
    return build_series([10.0, 20.0, 30.0, 40.0] * 3)


@pytest.fixture
def bubble_series() -> list[Observation]:
    """Observations mixing bubble points and scalar values."""
    return [
        Observation(
            value=999.0,
            bubble_points=[BubblePoint(size=1.0), BubblePoint(size="2.5")],
            project_name="Apollo",
            kpi_group="Quality",
        ),
        Observation(value="3", project_name="Apollo", kpi_group="Quality"),
        Observation(
            value=None,
            bubble_points=[BubblePoint(size="n/a"), BubblePoint(size=4.0)],
            project_name="Gemini",
            kpi_group="Delivery",
        ),
    ]


@pytest.fixture
def sample_linear_config() -> LinearRegressionModelConfig:
    """Create sample linear regression configuration."""
    return LinearRegressionModelConfig(schema_version="1.0")


@pytest.fixture
def sample_smoothing_config() -> ExponentialSmoothingModelConfig:
    """Create sample exponential smoothing configuration."""
    return ExponentialSmoothingModelConfig(schema_version="1.0")


@pytest.fixture
def sample_theta_config() -> ThetaMethodModelConfig:
    """Create sample Theta method configuration."""
    return ThetaMethodModelConfig(schema_version="1.0")


@pytest.fixture
def sample_arima_config() -> ArimaModelConfig:
    """Create sample ARIMA configuration."""
    return ArimaModelConfig(schema_version="1.0")


@pytest.fixture
def sample_sarima_config() -> SarimaModelConfig:
    """Create sample SARIMA configuration."""
    return SarimaModelConfig(schema_version="1.0")


@pytest.fixture
def sample_lstm_config() -> LstmModelConfig:
    """Create sample LSTM configuration with a short training budget."""
    return LstmModelConfig(schema_version="1.0", max_epochs=30, deadline_seconds=None)
