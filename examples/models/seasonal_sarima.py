"""Example: Seasonal-index forecasting with period detection.

The seasonal forecaster tries periods 3, 4, 6 and 12 in order and keeps the
first whose lag correlation exceeds the threshold, then scales the recent
level by the seasonal index of the next phase.

Usage:
    python examples/models/seasonal_sarima.py
"""

from kpi_forecast.features.forecasting.models import SeasonalForecaster
from kpi_forecast.features.forecasting.schemas import Observation, SarimaModelConfig
from kpi_forecast.features.forecasting.seasonal import forecast_seasonal


def main():
    # 1. Create sample data with a quarterly pattern (3 years)
    pattern = [10.0, 20.0, 30.0, 40.0]
    values = pattern * 3
    series = [Observation(value=v, project_name="Gemini", kpi_group="Delivery") for v in values]
    print(f"Training data: {len(values)} observations")
    print(f"Quarterly pattern: {pattern}")

    # 2. Inspect the decomposition
    seasonal = forecast_seasonal(values)
    print(f"\nDetected period: {seasonal.period}")
    print(f"Seasonal indices: {[round(float(i), 3) for i in seasonal.indices]}")
    print(f"Recent level: {seasonal.level:.2f}")
    print(f"Next phase: {seasonal.phase}")

    # 3. Forecast through the model
    config = SarimaModelConfig(schema_version="1.0")
    model = SeasonalForecaster(config, random_state=42)
    result = model.generate_forecast(series)[0]
    print(f"\nForecast: {result.predicted_value:.2f} ({result.project_name}/{result.kpi_group})")
    assert abs(result.predicted_value - pattern[0]) < 1e-9, "Next value should start the cycle!"
    print("  ✓ Forecast starts the next cycle")

    # 4. A flat series falls back to the default period with neutral indices
    flat = [Observation(value=0.0)] * 8
    print(f"\nAll-zero series forecast: {model.generate_forecast(flat)[0].predicted_value}")


if __name__ == "__main__":
    main()
