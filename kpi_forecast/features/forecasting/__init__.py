"""Forecasting module for one-step KPI forecasts.

This module provides a unified interface for forecasting the next value of a
short KPI history with six interchangeable models.

Exports:
    Models:
        - BaseForecaster: Abstract base class for all forecasters
        - LinearTrendForecaster: Least-squares trend line
        - ExponentialSmoothingForecaster: Adaptive single exponential smoothing
        - ThetaForecaster: SES level averaged with a trend line
        - TrendDecompositionForecaster: Differencing plus ARMA(p, q)
        - SeasonalForecaster: Seasonal-index forecast with period detection
        - SequenceForecaster: Gated recurrent cell trained per call
        - model_factory, config_for, resolve_model_type, available_models

    Schemas:
        - Observation, BubblePoint, HistoricalSeries
        - ModelConfig: Union of all model configurations
        - ForecastResult, ForecastOutcome

    Extraction:
        - extract_values, can_forecast, check_eligibility

    Service:
        - ForecastingService: Timing, logging and composite runs
        - ForecastJob: One request for forecast_pair
"""

from kpi_forecast.features.forecasting.extraction import (
    can_forecast,
    check_eligibility,
    extract_values,
)
from kpi_forecast.features.forecasting.models import (
    BaseForecaster,
    ExponentialSmoothingForecaster,
    LinearTrendForecaster,
    ModelType,
    SeasonalForecaster,
    SequenceForecaster,
    ThetaForecaster,
    TrendDecompositionForecaster,
    available_models,
    config_for,
    model_factory,
    resolve_model_type,
)
from kpi_forecast.features.forecasting.schemas import (
    ArimaModelConfig,
    BubblePoint,
    ExponentialSmoothingModelConfig,
    ForecastOutcome,
    ForecastResult,
    HistoricalSeries,
    LinearRegressionModelConfig,
    LstmModelConfig,
    ModelConfig,
    ModelConfigBase,
    Observation,
    SarimaModelConfig,
    ThetaMethodModelConfig,
)
from kpi_forecast.features.forecasting.service import ForecastingService, ForecastJob

__all__ = [
    # Schemas
    "ArimaModelConfig",
    # Models
    "BaseForecaster",
    "BubblePoint",
    "ExponentialSmoothingForecaster",
    "ExponentialSmoothingModelConfig",
    # Service
    "ForecastJob",
    "ForecastOutcome",
    "ForecastResult",
    "ForecastingService",
    "HistoricalSeries",
    "LinearRegressionModelConfig",
    "LinearTrendForecaster",
    "LstmModelConfig",
    "ModelConfig",
    "ModelConfigBase",
    "ModelType",
    "Observation",
    "SarimaModelConfig",
    "SeasonalForecaster",
    "SequenceForecaster",
    "ThetaForecaster",
    "ThetaMethodModelConfig",
    "TrendDecompositionForecaster",
    "available_models",
    # Extraction
    "can_forecast",
    "check_eligibility",
    "config_for",
    "extract_values",
    "model_factory",
    "resolve_model_type",
]
