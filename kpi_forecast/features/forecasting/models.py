"""Forecasting models with a unified one-step interface.

All forecasters implement a common interface:
- forecast(series) -> ForecastOutcome (never raises)
- generate_forecast(series) -> list[ForecastResult] (zero or one element)
- can_forecast(series) -> bool
- get_params() -> dict

Forecasters are stateless strategies built from a frozen config. Every call
extracts values, re-checks eligibility, runs the model on private state, and
clamps the result to >= 0.

CRITICAL: All implementations must be deterministic with fixed random_state.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, ClassVar, Literal

import numpy as np

from kpi_forecast.core.config import KNOWN_MODEL_NAMES
from kpi_forecast.core.exceptions import (
    ForecastError,
    ForecastStatus,
    NumericalFailureError,
    log_forecast_error,
)
from kpi_forecast.core.logging import get_logger
from kpi_forecast.features.forecasting.arma import forecast_trend_decomposition
from kpi_forecast.features.forecasting.extraction import can_forecast, check_eligibility
from kpi_forecast.features.forecasting.recurrent import forecast_sequence
from kpi_forecast.features.forecasting.schemas import (
    ArimaModelConfig,
    ExponentialSmoothingModelConfig,
    ForecastOutcome,
    ForecastResult,
    LinearRegressionModelConfig,
    LstmModelConfig,
    ModelConfig,
    Observation,
    SarimaModelConfig,
    ThetaMethodModelConfig,
)
from kpi_forecast.features.forecasting.seasonal import forecast_seasonal
from kpi_forecast.features.forecasting.trend import (
    choose_alpha,
    fit_linear_trend,
    smooth_level,
    theta_forecast,
)

logger = get_logger(__name__)

ModelType = Literal[
    "linear_regression",
    "exponential_smoothing",
    "theta_method",
    "arima",
    "sarima",
    "lstm",
]


class BaseForecaster(ABC):
    """Abstract base class for all forecasting models.

    Holds only the frozen config and the seed; subclasses implement
    `_predict`, which maps extracted values to an unclamped forecast and
    raises ForecastError subclasses when the series cannot be forecast.

    Attributes:
        config: Frozen model configuration.
        random_state: Random seed for reproducibility.
    """

    model_type: ClassVar[ModelType]

    def __init__(self, config: ModelConfig, random_state: int = 42) -> None:
        """Initialize the forecaster.

        Args:
            config: Model configuration matching this forecaster.
            random_state: Random seed for reproducibility.
        """
        self.config = config
        self.random_state = random_state

    @property
    def min_data_points(self) -> int:
        """Minimum number of extracted values the model needs."""
        return self.config.min_data_points

    @abstractmethod
    def _predict(self, values: list[float]) -> float:
        """Compute the raw next-period forecast.

        Args:
            values: Extracted values, already checked for eligibility.

        Returns:
            Unclamped forecast.

        Raises:
            ForecastError: If the model cannot produce a usable value.
        """

    def can_forecast(self, series: Sequence[Observation] | None) -> bool:
        """Check whether the series is long enough for this model."""
        return can_forecast(series, self.min_data_points)

    def forecast(self, series: Sequence[Observation] | None) -> ForecastOutcome:
        """Forecast the next value of a series.

        Failures never propagate: ineligible input, numerical trouble and
        unexpected errors all produce an outcome without a result, carrying
        the matching status.

        Args:
            series: Chronologically ordered observations.

        Returns:
            ForecastOutcome with a result on success.
        """
        try:
            values = check_eligibility(series, self.min_data_points)
            raw = self._predict(values)
            if not math.isfinite(raw):
                raise NumericalFailureError(
                    "Forecast is not finite",
                    status=ForecastStatus.NON_FINITE_FIT,
                    details={"raw_forecast": str(raw)},
                )
        except ForecastError as e:
            log_forecast_error(e, self.model_type)
            return ForecastOutcome(
                model_type=self.model_type,
                status=e.status,
                detail=e.message,
            )
        except Exception as e:
            logger.exception(
                "forecasting.forecast_failed",
                model_type=self.model_type,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ForecastOutcome(
                model_type=self.model_type,
                status=ForecastStatus.UNEXPECTED_ERROR,
                detail=str(e),
            )

        last = series[-1] if series else Observation()
        result = ForecastResult(
            predicted_value=max(0.0, raw),
            project_name=last.project_name,
            kpi_group=last.kpi_group,
            model_name=self.model_type,
        )

        logger.debug(
            "forecasting.forecast_produced",
            model_type=self.model_type,
            n_values=len(values),
            raw_forecast=raw,
            predicted_value=result.predicted_value,
        )
        return ForecastOutcome(model_type=self.model_type, result=result)

    def generate_forecast(self, series: Sequence[Observation] | None) -> list[ForecastResult]:
        """Forecast and return zero or one result."""
        return self.forecast(series).results

    def get_params(self) -> dict[str, Any]:
        """Get model parameters.

        Returns:
            Config fields plus random_state.
        """
        params = self.config.model_dump()
        params["random_state"] = self.random_state
        return params


class LinearTrendForecaster(BaseForecaster):
    """Least-squares trend line extrapolated one step.

    Formula: y_hat[n] = a * n + b, with a, b fitted over t = 0..n-1
    """

    model_type = "linear_regression"

    def _predict(self, values: list[float]) -> float:
        fit = fit_linear_trend(values)
        if not fit.is_finite:
            raise NumericalFailureError(
                "Linear trend coefficients are not finite",
                status=ForecastStatus.NON_FINITE_FIT,
                details={"n": fit.n_observations},
            )
        logger.debug(
            "forecasting.linear_trend_fitted",
            slope=fit.slope,
            intercept=fit.intercept,
            r_squared=fit.r_squared,
        )
        return fit.predict(len(values))


class ExponentialSmoothingForecaster(BaseForecaster):
    """Single exponential smoothing with volatility-driven alpha.

    The final smoothed level is the forecast.
    """

    model_type = "exponential_smoothing"
    config: ExponentialSmoothingModelConfig

    def _predict(self, values: list[float]) -> float:
        alpha = choose_alpha(values, self.config.default_alpha, self.config.cv_min_points)
        logger.debug("forecasting.smoothing_alpha_chosen", alpha=alpha, n=len(values))
        return smooth_level(values, alpha)


class ThetaForecaster(BaseForecaster):
    """Theta method: SES level averaged with a first-to-last trend extrapolation."""

    model_type = "theta_method"
    config: ThetaMethodModelConfig

    def _predict(self, values: list[float]) -> float:
        return theta_forecast(values, alpha=self.config.alpha)


class TrendDecompositionForecaster(BaseForecaster):
    """ARIMA-style forecaster: optional differencing plus an ARMA(p, q) fit.

    Orders are picked from the working series length; a series whose second
    half has a markedly different variance is differenced once.
    """

    model_type = "arima"
    config: ArimaModelConfig

    def _predict(self, values: list[float]) -> float:
        decomposition = forecast_trend_decomposition(values, self.config.variance_shift_ratio)
        logger.debug(
            "forecasting.arima_fitted",
            p=decomposition.p,
            d=decomposition.d,
            q=decomposition.q,
            delta=decomposition.delta,
        )
        return decomposition.forecast


class SeasonalForecaster(BaseForecaster):
    """Multiplicative seasonal-index forecaster with period detection."""

    model_type = "sarima"
    config: SarimaModelConfig

    def _predict(self, values: list[float]) -> float:
        seasonal = forecast_seasonal(
            values,
            candidates=self.config.seasonal_candidates,
            threshold=self.config.correlation_threshold,
            default_period=self.config.default_period,
        )
        logger.debug(
            "forecasting.seasonal_period_detected",
            period=seasonal.period,
            phase=seasonal.phase,
            level=seasonal.level,
        )
        return seasonal.forecast


class SequenceForecaster(BaseForecaster):
    """Gated recurrent cell trained from scratch on every call.

    CRITICAL: Weights are drawn from numpy.random.default_rng(random_state),
    so the same seed and series always give the same forecast.
    """

    model_type = "lstm"
    config: LstmModelConfig

    def _predict(self, values: list[float]) -> float:
        sequence = forecast_sequence(
            values,
            rng=np.random.default_rng(self.random_state),
            lookback_window=self.config.lookback_window,
            hidden_size=self.config.hidden_size,
            learning_rate=self.config.learning_rate,
            max_epochs=self.config.max_epochs,
            patience=self.config.patience,
            tolerance=self.config.tolerance,
            deadline_seconds=self.config.deadline_seconds,
        )
        logger.debug(
            "forecasting.lstm_trained",
            lookback=sequence.lookback,
            epochs_run=sequence.report.epochs_run,
            epoch_limit=sequence.report.epoch_limit,
            final_loss=sequence.report.final_loss,
            stopped_early=sequence.report.stopped_early,
            deadline_reached=sequence.report.deadline_reached,
        )
        return sequence.forecast


# =============================================================================
# Registry
# =============================================================================

_FORECASTERS: dict[str, tuple[type[BaseForecaster], type[Any]]] = {
    "linear_regression": (LinearTrendForecaster, LinearRegressionModelConfig),
    "exponential_smoothing": (ExponentialSmoothingForecaster, ExponentialSmoothingModelConfig),
    "theta_method": (ThetaForecaster, ThetaMethodModelConfig),
    "arima": (TrendDecompositionForecaster, ArimaModelConfig),
    "sarima": (SeasonalForecaster, SarimaModelConfig),
    "lstm": (SequenceForecaster, LstmModelConfig),
}


def available_models() -> list[str]:
    """Canonical names of every supported model."""
    return list(_FORECASTERS)


def resolve_model_type(name: str | None) -> ModelType | None:
    """Map a model name to its canonical model_type.

    Matching is case-insensitive and accepts the legacy camelCase names
    (e.g. "thetaMethod").

    Args:
        name: Model name as stored by callers.

    Returns:
        Canonical model_type, or None for an unknown name.
    """
    if not name:
        return None
    canonical = KNOWN_MODEL_NAMES.get(name.strip().lower())
    if canonical is None:
        return None
    return canonical  # type: ignore[return-value]


def config_for(model_type: str) -> ModelConfig:
    """Default configuration for a canonical model_type.

    Raises:
        ValueError: If model_type is unknown.
    """
    if model_type not in _FORECASTERS:
        raise ValueError(f"Unknown model type: {model_type}")
    _, config_cls = _FORECASTERS[model_type]
    config: ModelConfig = config_cls()
    return config


def model_factory(config: ModelConfig, random_state: int = 42) -> BaseForecaster:
    """Create a forecaster instance from a configuration.

    Args:
        config: Model configuration.
        random_state: Random seed for reproducibility.

    Returns:
        Instantiated forecaster.

    Raises:
        ValueError: If model_type is unknown or the config type does not match.
    """
    model_type: str = config.model_type
    if model_type not in _FORECASTERS:
        raise ValueError(f"Unknown model type: {model_type}")

    forecaster_cls, config_cls = _FORECASTERS[model_type]
    if not isinstance(config, config_cls):
        raise ValueError(f"Invalid config type for {model_type}")
    return forecaster_cls(config, random_state=random_state)
