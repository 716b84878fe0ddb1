"""Structured logging for forecast runs.

Every event emitted while the service runs a forecast carries the KPI id and
the model type of that run, and numpy values are rendered as plain numbers so
the JSON output stays machine-readable.
"""

import logging
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import numpy as np
import structlog

from kpi_forecast.core.config import Settings, get_settings

# Context of the forecast currently running on this thread
kpi_id_ctx: ContextVar[str | None] = ContextVar("kpi_id", default=None)
model_type_ctx: ContextVar[str | None] = ContextVar("model_type", default=None)


@contextmanager
def bind_forecast_context(kpi_id: str | None, model_type: str | None) -> Iterator[None]:
    """Bind kpi_id and model_type to log events for the duration of a block.

    Args:
        kpi_id: KPI identifier (None leaves events untagged).
        model_type: Model running the forecast.
    """
    kpi_token = kpi_id_ctx.set(kpi_id)
    model_token = model_type_ctx.set(model_type)
    try:
        yield
    finally:
        model_type_ctx.reset(model_token)
        kpi_id_ctx.reset(kpi_token)


def add_forecast_context(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Add kpi_id and model_type from context; explicit event keys win."""
    kpi_id = kpi_id_ctx.get()
    if kpi_id:
        event_dict.setdefault("kpi_id", kpi_id)
    model_type = model_type_ctx.get()
    if model_type:
        event_dict.setdefault("model_type", model_type)
    return event_dict


def coerce_numpy_values(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Replace numpy scalars and arrays with builtin floats, ints and lists."""
    for key, value in event_dict.items():
        if isinstance(value, np.generic):
            event_dict[key] = value.item()
        elif isinstance(value, np.ndarray):
            event_dict[key] = value.tolist()
    return event_dict


def resolve_log_level(settings: Settings) -> int:
    """Debug mode forces DEBUG so per-epoch and per-fit events are visible."""
    if settings.debug:
        return logging.DEBUG
    level: int = getattr(logging, settings.log_level)
    return level


def configure_logging() -> None:
    """Configure structlog for forecast runs.

    JSON output by default; console output when log_format is "console" or
    debug is on.
    """
    settings = get_settings()

    processors: list[structlog.types.Processor] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_forecast_context,
        coerce_numpy_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.format_exc_info,
    ]

    if settings.debug or settings.log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(resolve_log_level(settings)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Get a logger for a forecasting module.

    Args:
        name: Logger name (typically __name__ of the calling module).

    Returns:
        Structlog logger; events pick up the bound forecast context.
    """
    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger
