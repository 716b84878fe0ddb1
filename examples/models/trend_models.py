"""Example: Forecasting a trending KPI with the four trend models.

Runs the linear trend, exponential smoothing, Theta and ARIMA-style
forecasters on the same monthly defect-density history and prints each
one-step forecast next to the value a dashboard would display.

Usage:
    python examples/models/trend_models.py
"""

from kpi_forecast.features.forecasting.models import model_factory
from kpi_forecast.features.forecasting.schemas import (
    ArimaModelConfig,
    ExponentialSmoothingModelConfig,
    LinearRegressionModelConfig,
    Observation,
    ThetaMethodModelConfig,
)


def main():
    # 1. Create sample history (monthly KPI values, oldest first)
    values = [100.0, 105.0, 110.0, 115.0, 120.0]
    series = [
        Observation(value=v, project_name="Apollo", kpi_group="Quality") for v in values
    ]
    print(f"History: {values}")

    # 2. Configure the models
    configs = [
        LinearRegressionModelConfig(schema_version="1.0"),
        ExponentialSmoothingModelConfig(schema_version="1.0"),
        ThetaMethodModelConfig(schema_version="1.0", alpha=0.2),
        ArimaModelConfig(schema_version="1.0"),
    ]

    # 3. Forecast with each model
    print("\nNext-period forecasts:")
    for config in configs:
        model = model_factory(config, random_state=42)
        outcome = model.forecast(series)
        if outcome.result is None:
            print(f"  {model.model_type:<22} no forecast ({outcome.status})")
            continue
        print(
            f"  {model.model_type:<22} {outcome.result.predicted_value:10.4f}"
            f"  (display {outcome.result.display_value})"
        )

    # 4. Show the eligibility gate
    short_series = series[:2]
    arima = model_factory(ArimaModelConfig())
    print(f"\nARIMA on {len(short_series)} points: can_forecast={arima.can_forecast(short_series)}")
    print(f"  outcome status: {arima.forecast(short_series).status}")


if __name__ == "__main__":
    main()
