"""Example: Forecasting both inputs of a composite KPI in parallel.

A composite KPI (e.g. defects per thousand lines) needs a forecast of two
input series. The service runs both on a two-worker pool and returns an
empty outcome for a branch that cannot be forecast.

Usage:
    python examples/models/composite_pair.py
"""

from kpi_forecast.core.logging import configure_logging
from kpi_forecast.features.forecasting.schemas import (
    ArimaModelConfig,
    LinearRegressionModelConfig,
    Observation,
)
from kpi_forecast.features.forecasting.service import ForecastingService, ForecastJob


def main():
    configure_logging()

    # 1. Create the two input histories
    defects = [Observation(value=v, kpi_group="Quality") for v in [40, 42, 45, 44, 48, 51]]
    kloc = [Observation(value=v, kpi_group="Size") for v in ["120", "124", "129", "133"]]

    # 2. Forecast both branches in parallel
    service = ForecastingService()
    numerator, denominator = service.forecast_pair(
        ForecastJob(defects, LinearRegressionModelConfig(), "defects"),
        ForecastJob(kloc, ArimaModelConfig(), "kloc"),
    )

    # 3. Report each branch
    for label, outcome in (("defects", numerator), ("kloc", denominator)):
        if outcome.result is not None:
            print(f"{label}: {outcome.result.display_value}")
        else:
            print(f"{label}: no forecast ({outcome.status}: {outcome.detail})")

    # 4. Same call by legacy model name
    results = service.generate_forecasts(kloc, "linearRegression", kpi_id="kloc")
    print(f"\nkloc via linearRegression: {[r.display_value for r in results]}")


if __name__ == "__main__":
    main()
