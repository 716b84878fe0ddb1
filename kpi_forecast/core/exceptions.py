"""Forecast failure taxonomy and the exceptions that carry it.

Models raise these internally; the forecaster entry point converts them into a
structured ``ForecastOutcome`` so nothing escapes to the caller. The status codes
are the machine-readable diagnostic attached to every empty outcome.
"""

from enum import StrEnum
from typing import Any

from kpi_forecast.core.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Status Codes
# =============================================================================


class FailureKind(StrEnum):
    """Broad failure families.

    - INELIGIBLE_INPUT: expected outcome, series too short or degenerate
    - NUMERICAL_FAILURE: fit produced unusable parameters
    - UNEXPECTED_FAILURE: anything else raised while fitting or predicting
    """

    INELIGIBLE_INPUT = "ineligible_input"
    NUMERICAL_FAILURE = "numerical_failure"
    UNEXPECTED_FAILURE = "unexpected_failure"


class ForecastStatus(StrEnum):
    """Reason code attached to every forecast outcome."""

    OK = "ok"
    EMPTY_SERIES = "empty_series"
    INSUFFICIENT_DATA = "insufficient_data"
    INSUFFICIENT_WINDOWS = "insufficient_windows"
    NON_FINITE_FIT = "non_finite_fit"
    INSUFFICIENT_DEGREES_OF_FREEDOM = "insufficient_degrees_of_freedom"
    NUMERICAL_FAILURE = "numerical_failure"
    UNEXPECTED_ERROR = "unexpected_error"

    @property
    def kind(self) -> FailureKind | None:
        """Failure family for this status (None for OK)."""
        return _STATUS_KINDS.get(self)


_STATUS_KINDS: dict[ForecastStatus, FailureKind] = {
    ForecastStatus.EMPTY_SERIES: FailureKind.INELIGIBLE_INPUT,
    ForecastStatus.INSUFFICIENT_DATA: FailureKind.INELIGIBLE_INPUT,
    ForecastStatus.INSUFFICIENT_WINDOWS: FailureKind.INELIGIBLE_INPUT,
    ForecastStatus.NON_FINITE_FIT: FailureKind.NUMERICAL_FAILURE,
    ForecastStatus.INSUFFICIENT_DEGREES_OF_FREEDOM: FailureKind.NUMERICAL_FAILURE,
    ForecastStatus.NUMERICAL_FAILURE: FailureKind.NUMERICAL_FAILURE,
    ForecastStatus.UNEXPECTED_ERROR: FailureKind.UNEXPECTED_FAILURE,
}


# =============================================================================
# Exception Classes
# =============================================================================


class ForecastError(Exception):
    """Base exception for forecasting failures.

    All engine-specific exceptions inherit from this class. Each carries a
    ForecastStatus so the failure can be reported without parsing log text.
    """

    default_status: ForecastStatus = ForecastStatus.UNEXPECTED_ERROR

    def __init__(
        self,
        message: str,
        status: ForecastStatus | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize forecast error.

        Args:
            message: Human-readable error message.
            status: Machine-readable reason code.
            details: Additional error context.
        """
        super().__init__(message)
        self.message = message
        self.status = status or self.default_status
        self.details = details or {}

    @property
    def kind(self) -> FailureKind:
        """Failure family of this error."""
        return self.status.kind or FailureKind.UNEXPECTED_FAILURE

    @property
    def title(self) -> str:
        """Short summary of the problem type."""
        return self.status.value.replace("_", " ").title()


class IneligibleInputError(ForecastError):
    """Series is empty, too short, or too degenerate for the model.

    This is a normal outcome rather than a fault.
    """

    default_status = ForecastStatus.INSUFFICIENT_DATA

    def __init__(
        self,
        message: str = "Series is not eligible for forecasting",
        status: ForecastStatus | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, status=status, details=details)


class NumericalFailureError(ForecastError):
    """Fit produced non-finite parameters or lacked degrees of freedom."""

    default_status = ForecastStatus.NUMERICAL_FAILURE

    def __init__(
        self,
        message: str = "Numerical failure while fitting",
        status: ForecastStatus | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, status=status, details=details)


def log_forecast_error(exc: ForecastError, model_type: str) -> None:
    """Log a forecast error at a level matching its failure family.

    Ineligible input is expected and logged at debug; numerical failures are
    warnings.

    Args:
        exc: The raised forecast error.
        model_type: Model that raised it.
    """
    log = logger.debug if exc.kind is FailureKind.INELIGIBLE_INPUT else logger.warning
    log(
        "forecasting.forecast_rejected",
        model_type=model_type,
        status=exc.status.value,
        kind=exc.kind.value,
        error=exc.message,
        **exc.details,
    )
