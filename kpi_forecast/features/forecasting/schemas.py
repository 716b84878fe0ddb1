"""Pydantic schemas for KPI observations, model configuration, and results.

Model configs are designed to be:
- Immutable (frozen=True) for reproducibility
- Versioned (schema_version) for audit
- Hashable (config_hash) for deduplication
"""

from __future__ import annotations

import hashlib
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from kpi_forecast.core.exceptions import FailureKind, ForecastStatus

# =============================================================================
# Input Schemas
# =============================================================================


class BubblePoint(BaseModel):
    """One decomposed sub-value of an observation.

    Attributes:
        size: Sub-value; may arrive as a number or a numeric string.
    """

    model_config = ConfigDict(frozen=True)

    size: float | str | None = None


class Observation(BaseModel):
    """One historical KPI data point.

    Attributes:
        value: Scalar KPI value (number or numeric string).
        bubble_points: Optional decomposed sub-values, preferred over value.
        project_name: Opaque metadata carried to the forecast.
        kpi_group: Opaque metadata carried to the forecast.
    """

    model_config = ConfigDict(frozen=True)

    value: float | str | None = None
    bubble_points: list[BubblePoint] | None = None
    project_name: str | None = None
    kpi_group: str | None = None


# Chronologically ordered history, oldest first
HistoricalSeries = list[Observation]


# =============================================================================
# Model Configuration Schemas
# =============================================================================


class ModelConfigBase(BaseModel):
    """Base configuration for all forecasting models.

    All model configs inherit from this base to ensure:
    - Immutability after creation (frozen=True)
    - No extra fields allowed (extra="forbid")
    - Schema versioning for reproducibility
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    schema_version: str = Field(
        default="1.0",
        description="Semantic version of this config schema",
        pattern=r"^\d+\.\d+(\.\d+)?$",
    )

    def config_hash(self) -> str:
        """Generate deterministic hash of configuration.

        Returns:
            16-character hex string hash of config JSON.
        """
        config_json = self.model_dump_json()
        return hashlib.sha256(config_json.encode()).hexdigest()[:16]


class LinearRegressionModelConfig(ModelConfigBase):
    """Configuration for the least-squares trend forecaster.

    Formula: y_hat[n] = a * n + b, fitted over t = 0..n-1
    """

    model_type: Literal["linear_regression"] = "linear_regression"
    min_data_points: int = Field(default=2, ge=2, le=1000)


class ExponentialSmoothingModelConfig(ModelConfigBase):
    """Configuration for adaptive single exponential smoothing.

    Alpha is picked from the coefficient of variation once cv_min_points
    observations exist; below that default_alpha is used.
    """

    model_type: Literal["exponential_smoothing"] = "exponential_smoothing"
    min_data_points: int = Field(default=1, ge=1, le=1000)
    default_alpha: float = Field(default=0.3, gt=0.0, le=1.0)
    cv_min_points: int = Field(default=3, ge=2)


class ThetaMethodModelConfig(ModelConfigBase):
    """Configuration for the Theta method (SES level averaged with a trend line)."""

    model_type: Literal["theta_method"] = "theta_method"
    min_data_points: int = Field(default=3, ge=2, le=1000)
    alpha: float = Field(default=0.2, gt=0.0, le=1.0, description="SES smoothing factor")


class ArimaModelConfig(ModelConfigBase):
    """Configuration for the ARIMA-style trend decomposition forecaster.

    Attributes:
        variance_shift_ratio: Half-series variance ratio at or above which the
            series is differenced once.
    """

    model_type: Literal["arima"] = "arima"
    min_data_points: int = Field(default=5, ge=3, le=1000)
    variance_shift_ratio: float = Field(default=2.0, gt=1.0)


class SarimaModelConfig(ModelConfigBase):
    """Configuration for the seasonal-index forecaster.

    Attributes:
        seasonal_candidates: Periods tried in order during detection.
        correlation_threshold: Lag correlation a period must exceed.
        default_period: Period used when no candidate qualifies.
    """

    model_type: Literal["sarima"] = "sarima"
    min_data_points: int = Field(default=8, ge=2, le=1000)
    seasonal_candidates: tuple[int, ...] = Field(default=(3, 4, 6, 12), min_length=1)
    correlation_threshold: float = Field(default=0.3, ge=-1.0, le=1.0)
    default_period: int = Field(default=4, ge=1, le=365)

    @field_validator("seasonal_candidates")
    @classmethod
    def validate_candidates(cls, v: tuple[int, ...]) -> tuple[int, ...]:
        """Ensure every candidate period is at least 2."""
        if any(period < 2 for period in v):
            raise ValueError("seasonal_candidates must all be >= 2")
        return v


class LstmModelConfig(ModelConfigBase):
    """Configuration for the gated recurrent sequence forecaster.

    CRITICAL: Training is seeded through the forecaster's random_state; the
    same seed and input always give the same forecast.

    Attributes:
        lookback_window: Upper bound on window length (actual is min(this, n - 2)).
        hidden_size: Number of hidden units in the recurrent cell.
        learning_rate: Gradient step size.
        max_epochs: Hard cap on training epochs.
        patience: Consecutive flat epochs before early stopping.
        tolerance: Loss change treated as flat.
        deadline_seconds: Wall-clock training budget (None disables).
    """

    model_type: Literal["lstm"] = "lstm"
    min_data_points: int = Field(default=6, ge=3, le=1000)
    lookback_window: int = Field(default=3, ge=1, le=50)
    hidden_size: int = Field(default=12, ge=1, le=256)
    learning_rate: float = Field(default=0.01, gt=0.0, le=1.0)
    max_epochs: int = Field(default=100, ge=1, le=10000)
    patience: int = Field(default=10, ge=1)
    tolerance: float = Field(default=1e-6, ge=0.0)
    deadline_seconds: float | None = Field(default=5.0, gt=0.0)


# Union type for all model configs
ModelConfig = Annotated[
    LinearRegressionModelConfig
    | ExponentialSmoothingModelConfig
    | ThetaMethodModelConfig
    | ArimaModelConfig
    | SarimaModelConfig
    | LstmModelConfig,
    Field(discriminator="model_type"),
]


# =============================================================================
# Result Schemas
# =============================================================================


class ForecastResult(BaseModel):
    """Single next-period forecast.

    Attributes:
        predicted_value: Forecast value, never negative.
        project_name: Copied from the last observation.
        kpi_group: Copied from the last observation.
        model_name: Model that produced the value.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    predicted_value: float = Field(..., ge=0.0, allow_inf_nan=False)
    project_name: str | None = None
    kpi_group: str | None = None
    model_name: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_value(self) -> float:
        """Forecast rounded half-up to two decimals for dashboards."""
        rounded = Decimal(repr(self.predicted_value)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )
        return float(rounded)


class ForecastOutcome(BaseModel):
    """Forecast result plus the reason it is present or absent.

    Attributes:
        model_type: Model that was asked to forecast.
        status: Reason code (OK when a result is present).
        result: The forecast, or None.
        detail: Human-readable explanation for an empty outcome.
    """

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    model_type: str
    status: ForecastStatus = ForecastStatus.OK
    result: ForecastResult | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        """True when a forecast is present."""
        return self.result is not None

    @property
    def kind(self) -> FailureKind | None:
        """Failure family of the status (None when OK)."""
        return self.status.kind

    @property
    def results(self) -> list[ForecastResult]:
        """Zero-or-one element list, the shape consumers expect."""
        return [self.result] if self.result is not None else []
