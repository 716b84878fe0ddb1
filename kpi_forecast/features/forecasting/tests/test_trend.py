"""Tests for trend and smoothing computations."""

import math

import numpy as np
import pytest

from kpi_forecast.features.forecasting.trend import (
    choose_alpha,
    coefficient_of_variation,
    fit_linear_trend,
    smooth_level,
    smooth_levels,
    theta_forecast,
)


class TestFitLinearTrend:
    """Tests for fit_linear_trend."""

    def test_perfect_line(self):
        """Test that an exact line is recovered with r_squared 1."""
        fit = fit_linear_trend([1.0, 2.0, 3.0, 4.0, 5.0])

        assert fit.slope == pytest.approx(1.0)
        assert fit.intercept == pytest.approx(1.0)
        assert fit.r_squared == pytest.approx(1.0)
        assert fit.predict(5) == pytest.approx(6.0)

    def test_constant_series(self):
        """Test that a flat series has zero slope and r_squared 1."""
        fit = fit_linear_trend([7.0, 7.0, 7.0])

        assert fit.slope == 0.0
        assert fit.intercept == pytest.approx(7.0)
        assert fit.r_squared == 1.0

    def test_noisy_series_r_squared_below_one(self):
        """Test that noise lowers r_squared."""
        fit = fit_linear_trend([1.0, 3.0, 2.0, 5.0, 4.0])

        assert fit.is_finite
        assert 0.0 < fit.r_squared < 1.0

    def test_single_point_is_undefined(self):
        """Test that one point yields a non-finite fit instead of raising."""
        fit = fit_linear_trend([3.0])

        assert not fit.is_finite
        assert math.isnan(fit.slope)
        assert fit.n_observations == 1


class TestExponentialSmoothing:
    """Tests for alpha selection and smoothing."""

    def test_coefficient_of_variation_uses_sample_std(self):
        """Test that cv uses ddof=1 and the offset mean."""
        values = [1.0, 2.0, 3.0]
        expected = np.std(values, ddof=1) / (2.0 + 0.001)

        assert coefficient_of_variation(values) == pytest.approx(expected)

    def test_alpha_default_below_min_points(self):
        """Test that short series use the default alpha."""
        assert choose_alpha([1.0, 100.0]) == 0.3

    def test_alpha_for_stable_series(self):
        """Test that a low-volatility series uses the default alpha."""
        assert choose_alpha([10.0, 10.0, 10.0, 10.0]) == 0.3

    def test_alpha_for_moderate_series(self):
        """Test that 0.3 < cv <= 0.5 gives alpha 0.4."""
        values = [6.0, 10.0, 14.0]  # std 4, mean 10 -> cv ~0.4
        assert choose_alpha(values) == 0.4

    def test_alpha_for_volatile_series(self):
        """Test that cv > 0.5 gives alpha 0.5."""
        assert choose_alpha([1.0, 10.0, 1.0, 10.0]) == 0.5

    def test_smooth_levels_recurrence(self):
        """Test the smoothing recurrence step by step."""
        levels = smooth_levels([10.0, 20.0], alpha=0.5)
        np.testing.assert_allclose(levels, [10.0, 15.0])

    def test_smooth_level_constant(self):
        """Test that a constant series smooths to itself."""
        assert smooth_level([10.0] * 5, alpha=0.3) == pytest.approx(10.0)

    def test_smooth_empty_raises(self):
        """Test that smoothing an empty series raises ValueError."""
        with pytest.raises(ValueError, match="empty"):
            smooth_levels([], alpha=0.3)


class TestThetaForecast:
    """Tests for theta_forecast."""

    def test_constant_series(self):
        """Test that a constant series forecasts itself."""
        assert theta_forecast([5.0, 5.0, 5.0]) == pytest.approx(5.0)

    def test_trending_series(self):
        """Test the level / trend average on a short ramp."""
        values = [1.0, 2.0, 3.0]
        level = smooth_level(values, 0.2)  # 1.0 -> 1.2 -> 1.56
        expected = (level + 3.0 + 1.0) / 2

        assert level == pytest.approx(1.56)
        assert theta_forecast(values) == pytest.approx(expected)
