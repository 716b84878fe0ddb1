"""Tests for the ARIMA-style trend decomposition."""

import numpy as np
import pytest

from kpi_forecast.core.exceptions import ForecastStatus, NumericalFailureError
from kpi_forecast.features.forecasting.arma import (
    difference,
    fit_arma,
    forecast_trend_decomposition,
    has_variance_shift,
    population_variance,
    select_orders,
)


class TestVarianceShift:
    """Tests for has_variance_shift."""

    def test_short_series_is_stationary(self):
        """Test that fewer than four values are never differenced."""
        assert has_variance_shift([1.0, 100.0, 1.0]) is False

    def test_both_halves_flat(self):
        """Test that a constant series is stationary."""
        assert has_variance_shift([3.0] * 6) is False

    def test_one_half_flat(self):
        """Test that exactly one flat half signals non-stationarity."""
        assert has_variance_shift([5.0, 5.0, 5.0, 1.0, 9.0, 2.0]) is True

    def test_ratio_above_threshold(self):
        """Test that a large variance ratio signals non-stationarity."""
        assert has_variance_shift([1.0, 2.0, 1.0, 2.0, 10.0, 30.0, 10.0, 30.0]) is True

    def test_similar_halves(self):
        """Test that halves with similar variance are stationary."""
        assert has_variance_shift([1.0, 3.0, 1.0, 3.0, 1.0, 3.0, 1.0, 3.0]) is False

    def test_step_trend_halves(self):
        """Test the split at n // 2 on an evenly stepped series."""
        values = [100.0, 105.0, 110.0, 115.0, 120.0]
        # halves [100, 105] and [110, 115, 120]: variances 6.25 and 16.67
        assert population_variance(values[:2]) == pytest.approx(6.25)
        assert has_variance_shift(values) is True


class TestDifferenceAndOrders:
    """Tests for difference and select_orders."""

    def test_difference(self):
        """Test first-order differencing."""
        np.testing.assert_array_equal(difference([100.0, 105.0, 110.0]), [5.0, 5.0])

    def test_difference_single_value(self):
        """Test that a single value is returned unchanged."""
        np.testing.assert_array_equal(difference([1.0]), [1.0])

    @pytest.mark.parametrize(
        ("n", "expected"),
        [(3, (1, 0)), (4, (1, 0)), (5, (1, 1)), (8, (1, 1)), (9, (2, 1))],
    )
    def test_select_orders(self, n, expected):
        """Test order selection thresholds."""
        assert select_orders(n) == expected

    def test_select_orders_too_short(self):
        """Test that p + q >= n is rejected."""
        with pytest.raises(NumericalFailureError) as exc_info:
            select_orders(1)
        assert exc_info.value.status == ForecastStatus.INSUFFICIENT_DEGREES_OF_FREEDOM


class TestFitArma:
    """Tests for fit_arma."""

    def test_constant_series_forecasts_its_mean(self):
        """Test that a flat series forecasts its level."""
        fit = fit_arma([5.0, 5.0, 5.0, 5.0], p=1, q=0)
        assert fit.forecast_one() == pytest.approx(5.0)

    def test_ar1_process_recovers_coefficient(self):
        """Test that a noiseless AR(1) decay recovers its coefficient."""
        values = [10.0 * 0.5**i for i in range(10)]
        fit = fit_arma(values, p=1, q=0)
        mean = float(np.mean(values))

        expected = mean + fit.ar[0] * (values[-1] - mean)
        assert fit.p == 1
        assert fit.q == 0
        assert fit.forecast_one() == pytest.approx(expected)

    def test_arma_with_ma_term(self):
        """Test that an ARMA(2, 1) fit produces finite coefficients."""
        rng = np.random.default_rng(0)
        values = list(50.0 + rng.normal(0.0, 1.0, size=20))
        fit = fit_arma(values, p=2, q=1)

        assert fit.p == 2
        assert fit.q == 1
        assert np.all(np.isfinite(fit.ar))
        assert np.all(np.isfinite(fit.ma))
        assert np.isfinite(fit.forecast_one())

    def test_non_finite_input_rejected(self):
        """Test that NaN inputs are reported as a non-finite fit."""
        with pytest.raises(NumericalFailureError) as exc_info:
            fit_arma([1.0, float("nan"), 3.0, 4.0], p=1, q=0)
        assert exc_info.value.status == ForecastStatus.NON_FINITE_FIT

    def test_invalid_orders(self):
        """Test that p < 1 is a programming error."""
        with pytest.raises(ValueError, match="Invalid ARMA orders"):
            fit_arma([1.0, 2.0, 3.0], p=0, q=0)


class TestForecastTrendDecomposition:
    """Tests for the full pipeline."""

    def test_step_trend_forecast(self):
        """Test that [100..120] is differenced and forecast at 125."""
        decomposition = forecast_trend_decomposition([100.0, 105.0, 110.0, 115.0, 120.0])

        assert decomposition.d == 1
        assert (decomposition.p, decomposition.q) == (1, 0)
        assert decomposition.forecast == pytest.approx(125.0)

    def test_stationary_series_not_differenced(self):
        """Test that a stationary series is fitted on its raw values."""
        decomposition = forecast_trend_decomposition([3.0] * 8)

        assert decomposition.d == 0
        assert decomposition.forecast == pytest.approx(3.0)
