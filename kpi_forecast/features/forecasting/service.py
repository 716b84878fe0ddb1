"""Forecasting service: model resolution, timing, logging, composite runs.

Orchestrates:
- Resolving a model name (including legacy camelCase names) to a config
- Model instantiation via factory with the configured seed
- Binding the KPI id into the logging context for the call
- Running two independent forecasts side by side for composite KPIs

CRITICAL: Every call builds a fresh forecaster; nothing is shared between
calls or threads.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from typing import NamedTuple

from kpi_forecast.core.config import Settings, get_settings
from kpi_forecast.core.exceptions import ForecastStatus
from kpi_forecast.core.logging import bind_forecast_context, get_logger
from kpi_forecast.features.forecasting.models import (
    config_for,
    model_factory,
    resolve_model_type,
)
from kpi_forecast.features.forecasting.schemas import (
    ForecastOutcome,
    ForecastResult,
    ModelConfig,
    Observation,
)

logger = get_logger(__name__)


class ForecastJob(NamedTuple):
    """One independent forecast request.

    Attributes:
        series: Chronologically ordered observations.
        config: Model configuration.
        kpi_id: Optional KPI identifier bound into log events.
    """

    series: Sequence[Observation] | None
    config: ModelConfig
    kpi_id: str | None = None


class ForecastingService:
    """Service for running forecasting models.

    Provides orchestration layer for:
    - Single forecasts from a config or a model name
    - Composite forecasts over two independent series in parallel

    CRITICAL: All operations use Settings for reproducibility.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the forecasting service.

        Args:
            settings: Settings to use (defaults to the cached application settings).
        """
        self.settings = settings or get_settings()

    def forecast(
        self,
        series: Sequence[Observation] | None,
        config: ModelConfig,
        kpi_id: str | None = None,
    ) -> ForecastOutcome:
        """Forecast the next value of one series.

        Args:
            series: Chronologically ordered observations.
            config: Model configuration.
            kpi_id: Optional KPI identifier bound into log events.

        Returns:
            ForecastOutcome; a missing result carries the failure status.

        Raises:
            ValueError: If the config does not map to a known forecaster.
        """
        with bind_forecast_context(kpi_id, config.model_type):
            start_time = time.perf_counter()

            logger.info(
                "forecasting.forecast_started",
                model_type=config.model_type,
                config_hash=config.config_hash(),
                n_observations=len(series) if series else 0,
            )

            model = model_factory(config, random_state=self.settings.forecast_random_seed)
            outcome = model.forecast(series)

            duration_ms = (time.perf_counter() - start_time) * 1000

            logger.info(
                "forecasting.forecast_completed",
                model_type=config.model_type,
                config_hash=config.config_hash(),
                status=outcome.status.value,
                predicted_value=outcome.result.predicted_value if outcome.result else None,
                duration_ms=duration_ms,
            )
            return outcome

    def generate_forecasts(
        self,
        series: Sequence[Observation] | None,
        model_name: str | None = None,
        kpi_id: str | None = None,
    ) -> list[ForecastResult]:
        """Forecast with a model chosen by name.

        Args:
            series: Chronologically ordered observations.
            model_name: Model name, case-insensitive, legacy names accepted.
                Defaults to settings.forecast_default_model.
            kpi_id: Optional KPI identifier bound into log events.

        Returns:
            Zero or one forecast result; empty for an unknown model name.
        """
        name = model_name or self.settings.forecast_default_model
        model_type = resolve_model_type(name)
        if model_type is None:
            logger.warning("forecasting.unknown_model", model_name=name, kpi_id=kpi_id)
            return []

        return self.forecast(series, config_for(model_type), kpi_id=kpi_id).results

    def forecast_pair(
        self,
        first: ForecastJob | tuple[Sequence[Observation] | None, ModelConfig],
        second: ForecastJob | tuple[Sequence[Observation] | None, ModelConfig],
    ) -> tuple[ForecastOutcome, ForecastOutcome]:
        """Run two independent forecasts in parallel and join both.

        Used for composite KPIs that need a forecast of two input series. A
        branch that raises yields an empty UNEXPECTED_ERROR outcome without
        affecting the other branch.

        Args:
            first: First job (series, config[, kpi_id]).
            second: Second job (series, config[, kpi_id]).

        Returns:
            Outcomes in the order of the jobs.
        """
        jobs = [ForecastJob(*first), ForecastJob(*second)]

        logger.info(
            "forecasting.composite_started",
            model_types=[job.config.model_type for job in jobs],
            workers=self.settings.forecast_composite_workers,
        )

        with ThreadPoolExecutor(
            max_workers=self.settings.forecast_composite_workers,
            thread_name_prefix="kpi-forecast",
        ) as executor:
            futures = [
                executor.submit(self.forecast, job.series, job.config, job.kpi_id)
                for job in jobs
            ]
            outcomes = [
                self._collect(future, job) for future, job in zip(futures, jobs, strict=True)
            ]

        logger.info(
            "forecasting.composite_completed",
            statuses=[outcome.status.value for outcome in outcomes],
        )
        return outcomes[0], outcomes[1]

    @staticmethod
    def _collect(future: Future[ForecastOutcome], job: ForecastJob) -> ForecastOutcome:
        """Wait for one branch, converting an exception into an empty outcome."""
        try:
            return future.result()
        except Exception as e:
            logger.exception(
                "forecasting.composite_branch_failed",
                model_type=job.config.model_type,
                kpi_id=job.kpi_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ForecastOutcome(
                model_type=job.config.model_type,
                status=ForecastStatus.UNEXPECTED_ERROR,
                detail=str(e),
            )
