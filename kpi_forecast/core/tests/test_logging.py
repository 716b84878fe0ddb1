"""Tests for logging configuration."""

import json
import logging

import numpy as np
import pytest

from kpi_forecast.core.config import Settings, get_settings
from kpi_forecast.core.logging import (
    add_forecast_context,
    bind_forecast_context,
    coerce_numpy_values,
    configure_logging,
    get_logger,
    kpi_id_ctx,
    model_type_ctx,
    resolve_log_level,
)


def test_get_logger_returns_bound_logger():
    """get_logger should return a structlog logger."""
    configure_logging()
    logger = get_logger("test")

    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "error")


def test_bind_forecast_context_sets_and_resets():
    """bind_forecast_context should bind both values only inside the block."""
    assert kpi_id_ctx.get() is None
    assert model_type_ctx.get() is None

    with bind_forecast_context("kpi-123", "arima"):
        assert kpi_id_ctx.get() == "kpi-123"
        assert model_type_ctx.get() == "arima"

    assert kpi_id_ctx.get() is None
    assert model_type_ctx.get() is None


def test_bind_forecast_context_resets_on_error():
    """Context should be restored when the block raises."""
    with pytest.raises(RuntimeError), bind_forecast_context("kpi-1", "lstm"):
        raise RuntimeError("boom")

    assert kpi_id_ctx.get() is None
    assert model_type_ctx.get() is None


def test_add_forecast_context_processor():
    """add_forecast_context should copy bound values without overriding event keys."""
    assert add_forecast_context(None, "info", {"event": "x"}) == {"event": "x"}

    with bind_forecast_context("kpi-9", "sarima"):
        assert add_forecast_context(None, "info", {"event": "x"}) == {
            "event": "x",
            "kpi_id": "kpi-9",
            "model_type": "sarima",
        }
        explicit = add_forecast_context(None, "info", {"event": "x", "model_type": "lstm"})
        assert explicit["model_type"] == "lstm"


def test_coerce_numpy_values_processor():
    """numpy scalars and arrays should become builtin values."""
    event = coerce_numpy_values(
        None,
        "debug",
        {
            "event": "x",
            "loss": np.float64(0.25),
            "epoch": np.int64(3),
            "weights": np.array([1.0, 2.0]),
            "plain": 1.5,
        },
    )

    assert type(event["loss"]) is float
    assert event["loss"] == 0.25
    assert type(event["epoch"]) is int
    assert event["weights"] == [1.0, 2.0]
    assert event["plain"] == 1.5


def test_configure_logging_completes():
    """configure_logging should complete without error."""
    configure_logging()  # Should not raise


def test_json_output_includes_forecast_context(monkeypatch, capsys):
    """JSON rendering should include level, event, kpi_id and model_type."""
    monkeypatch.setenv("LOG_FORMAT", "json")
    get_settings.cache_clear()
    configure_logging()

    with bind_forecast_context("kpi-42", "theta_method"):
        get_logger("test").info("forecasting.test_event", value=1, loss=np.float64(0.5))

    line = capsys.readouterr().out.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == "forecasting.test_event"
    assert payload["level"] == "info"
    assert payload["kpi_id"] == "kpi-42"
    assert payload["model_type"] == "theta_method"
    assert payload["value"] == 1
    assert payload["loss"] == 0.5


@pytest.mark.parametrize("level", ["WARNING", "ERROR"])
def test_log_level_filters_lower_events(monkeypatch, capsys, level):
    """Events below the configured level should be dropped."""
    monkeypatch.setenv("LOG_LEVEL", level)
    get_settings.cache_clear()
    configure_logging()

    get_logger("test").info("forecasting.filtered_event")

    assert "forecasting.filtered_event" not in capsys.readouterr().out


def test_resolve_log_level():
    """debug should force DEBUG regardless of log_level."""
    assert resolve_log_level(Settings(log_level="WARNING")) == logging.WARNING
    assert resolve_log_level(Settings(debug=True, log_level="WARNING")) == logging.DEBUG


def test_debug_mode_emits_debug_events_on_console(monkeypatch, capsys):
    """DEBUG=true should let debug events through with console rendering."""
    monkeypatch.setenv("DEBUG", "true")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("LOG_FORMAT", "json")
    get_settings.cache_clear()
    configure_logging()

    get_logger("test").debug("forecasting.debug_event", epoch=2)

    out = capsys.readouterr().out
    assert "forecasting.debug_event" in out
    assert not out.strip().startswith("{")
