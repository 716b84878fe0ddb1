"""Core infrastructure: config, logging, exceptions."""

from kpi_forecast.core.config import Settings, get_settings
from kpi_forecast.core.exceptions import (
    FailureKind,
    ForecastError,
    ForecastStatus,
    IneligibleInputError,
    NumericalFailureError,
)
from kpi_forecast.core.logging import (
    bind_forecast_context,
    configure_logging,
    get_logger,
    kpi_id_ctx,
    model_type_ctx,
)

__all__ = [
    "FailureKind",
    "ForecastError",
    "ForecastStatus",
    "IneligibleInputError",
    "NumericalFailureError",
    "Settings",
    "bind_forecast_context",
    "configure_logging",
    "get_logger",
    "get_settings",
    "kpi_id_ctx",
    "model_type_ctx",
]
