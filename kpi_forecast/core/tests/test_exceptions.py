"""Tests for the forecast failure taxonomy."""

import pytest
from structlog.testing import capture_logs

from kpi_forecast.core.exceptions import (
    FailureKind,
    ForecastError,
    ForecastStatus,
    IneligibleInputError,
    NumericalFailureError,
    log_forecast_error,
)


class TestForecastStatus:
    """Tests for ForecastStatus."""

    def test_ok_has_no_kind(self):
        """OK is not a failure."""
        assert ForecastStatus.OK.kind is None

    @pytest.mark.parametrize(
        ("status", "kind"),
        [
            (ForecastStatus.EMPTY_SERIES, FailureKind.INELIGIBLE_INPUT),
            (ForecastStatus.INSUFFICIENT_DATA, FailureKind.INELIGIBLE_INPUT),
            (ForecastStatus.INSUFFICIENT_WINDOWS, FailureKind.INELIGIBLE_INPUT),
            (ForecastStatus.NON_FINITE_FIT, FailureKind.NUMERICAL_FAILURE),
            (ForecastStatus.INSUFFICIENT_DEGREES_OF_FREEDOM, FailureKind.NUMERICAL_FAILURE),
            (ForecastStatus.NUMERICAL_FAILURE, FailureKind.NUMERICAL_FAILURE),
            (ForecastStatus.UNEXPECTED_ERROR, FailureKind.UNEXPECTED_FAILURE),
        ],
    )
    def test_every_failure_status_has_a_kind(self, status, kind):
        """Each failure status belongs to exactly one family."""
        assert status.kind == kind

    def test_string_values(self):
        """Statuses serialise as plain strings."""
        assert ForecastStatus.INSUFFICIENT_WINDOWS == "insufficient_windows"


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_defaults(self):
        """Each subclass carries its default status."""
        assert IneligibleInputError().status == ForecastStatus.INSUFFICIENT_DATA
        assert NumericalFailureError().status == ForecastStatus.NUMERICAL_FAILURE
        assert ForecastError("x").status == ForecastStatus.UNEXPECTED_ERROR

    def test_explicit_status_and_details(self):
        """Status and details can be overridden."""
        exc = IneligibleInputError(
            "too short",
            status=ForecastStatus.INSUFFICIENT_WINDOWS,
            details={"windows": 1},
        )

        assert isinstance(exc, ForecastError)
        assert str(exc) == "too short"
        assert exc.message == "too short"
        assert exc.kind == FailureKind.INELIGIBLE_INPUT
        assert exc.details == {"windows": 1}
        assert exc.title == "Insufficient Windows"


class TestLogForecastError:
    """Tests for log_forecast_error."""

    def test_ineligible_logged_at_debug(self):
        """Ineligible input is an expected outcome."""
        exc = IneligibleInputError("short", details={"required": 5, "available": 2})
        with capture_logs() as logs:
            log_forecast_error(exc, "arima")

        assert logs == [
            {
                "event": "forecasting.forecast_rejected",
                "log_level": "debug",
                "model_type": "arima",
                "status": "insufficient_data",
                "kind": "ineligible_input",
                "error": "short",
                "required": 5,
                "available": 2,
            }
        ]

    def test_numerical_failure_logged_at_warning(self):
        """Numerical failures are warnings."""
        with capture_logs() as logs:
            log_forecast_error(NumericalFailureError("singular"), "arima")

        assert logs[0]["log_level"] == "warning"
        assert logs[0]["kind"] == "numerical_failure"
