"""Application configuration via Pydantic Settings v2."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Canonical model names plus the camelCase names stored in KPI master data
KNOWN_MODEL_NAMES: dict[str, str] = {
    "linear_regression": "linear_regression",
    "linearregression": "linear_regression",
    "exponential_smoothing": "exponential_smoothing",
    "exponentialsmoothing": "exponential_smoothing",
    "theta_method": "theta_method",
    "thetamethod": "theta_method",
    "arima": "arima",
    "sarima": "sarima",
    "lstm": "lstm",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Debug forces DEBUG level and console output
    debug: bool = False

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Forecasting
    forecast_random_seed: int = 42
    forecast_default_model: str = "linear_regression"
    forecast_composite_workers: int = Field(default=2, ge=1, le=8)

    @field_validator("forecast_default_model")
    @classmethod
    def validate_default_model(cls, v: str) -> str:
        """Validate that the default model resolves to a known forecaster.

        Args:
            v: Model name (snake_case or legacy camelCase).

        Returns:
            Canonical snake_case model name.

        Raises:
            ValueError: If the name is not a known model.
        """
        key = v.strip().lower()
        if key not in KNOWN_MODEL_NAMES:
            raise ValueError(
                f"Unknown forecast model '{v}'. "
                f"Valid models: {sorted(set(KNOWN_MODEL_NAMES.values()))}"
            )
        return KNOWN_MODEL_NAMES[key]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
