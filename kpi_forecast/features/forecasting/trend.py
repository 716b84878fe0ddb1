"""Closed-form trend and smoothing computations.

Supported:
- Ordinary least-squares trend line over the observation index
- Single exponential smoothing with a volatility-driven alpha
- Theta method (SES level averaged with a first-to-last trend line)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

# Small offset so a zero mean never divides by zero
CV_MEAN_EPSILON = 0.001


@dataclass(frozen=True)
class LinearTrendFit:
    """Least-squares line y = slope * t + intercept.

    Attributes:
        slope: Change per period (nan when undefined).
        intercept: Fitted value at t = 0 (nan when undefined).
        r_squared: Coefficient of determination (nan when undefined).
        n_observations: Number of points fitted.
    """

    slope: float
    intercept: float
    r_squared: float
    n_observations: int

    @property
    def is_finite(self) -> bool:
        """True when both slope and intercept are finite."""
        return bool(np.isfinite(self.slope) and np.isfinite(self.intercept))

    def predict(self, t: float) -> float:
        """Evaluate the fitted line at index t."""
        return self.slope * t + self.intercept


def fit_linear_trend(values: Sequence[float]) -> LinearTrendFit:
    """Fit y = a*t + b over t = 0..n-1 by ordinary least squares.

    Formula:
        a = sum((t - t_mean) * (y - y_mean)) / sum((t - t_mean)^2)
        b = y_mean - a * t_mean

    With fewer than two points the index has no spread and the fit is
    undefined; slope and intercept come back as nan instead of raising.

    Args:
        values: Observations in chronological order.

    Returns:
        LinearTrendFit for the series.
    """
    y = np.asarray(values, dtype=np.float64)
    n = len(y)
    if n < 2:
        return LinearTrendFit(
            slope=float("nan"),
            intercept=float("nan"),
            r_squared=float("nan"),
            n_observations=n,
        )

    t = np.arange(n, dtype=np.float64)
    t_mean = t.mean()
    y_mean = y.mean()
    sxx = float(np.sum((t - t_mean) ** 2))
    sxy = float(np.sum((t - t_mean) * (y - y_mean)))
    slope = sxy / sxx
    intercept = float(y_mean - slope * t_mean)

    ss_tot = float(np.sum((y - y_mean) ** 2))
    fitted = slope * t + intercept
    ss_res = float(np.sum((y - fitted) ** 2))
    # A flat series is perfectly explained by a flat line
    r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0 else 1.0

    return LinearTrendFit(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        n_observations=n,
    )


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Sample standard deviation divided by the (offset) mean.

    Args:
        values: At least two observations.

    Returns:
        std(ddof=1) / (mean + 0.001).
    """
    arr = np.asarray(values, dtype=np.float64)
    return float(np.std(arr, ddof=1) / (np.mean(arr) + CV_MEAN_EPSILON))


def choose_alpha(
    values: Sequence[float],
    default_alpha: float = 0.3,
    min_points: int = 3,
) -> float:
    """Pick a smoothing factor from the series volatility.

    - cv > 0.5 -> 0.5 (volatile, react quickly)
    - cv > 0.3 -> 0.4
    - otherwise default_alpha, which is also used below min_points values

    Args:
        values: Observations in chronological order.
        default_alpha: Alpha for stable or very short series.
        min_points: Observations needed before cv is trusted.

    Returns:
        Smoothing factor in (0, 1].
    """
    if len(values) < min_points:
        return default_alpha

    cv = coefficient_of_variation(values)
    if cv > 0.5:
        return 0.5
    if cv > 0.3:
        return 0.4
    return default_alpha


def smooth_levels(
    values: Sequence[float], alpha: float
) -> np.ndarray[Any, np.dtype[np.floating[Any]]]:
    """Run the single exponential smoothing recurrence.

    Formula: s[0] = x[0]; s[i] = alpha * x[i] + (1 - alpha) * s[i-1]

    Args:
        values: Non-empty observations in chronological order.
        alpha: Smoothing factor.

    Returns:
        Array of smoothed levels, same length as values.

    Raises:
        ValueError: If values is empty.
    """
    if len(values) == 0:
        raise ValueError("Cannot smooth an empty series")

    levels = np.zeros(len(values), dtype=np.float64)
    levels[0] = values[0]
    for i in range(1, len(values)):
        levels[i] = alpha * values[i] + (1 - alpha) * levels[i - 1]
    return levels


def smooth_level(values: Sequence[float], alpha: float) -> float:
    """Final smoothed level (the SES one-step forecast)."""
    return float(smooth_levels(values, alpha)[-1])


def theta_forecast(values: Sequence[float], alpha: float = 0.2) -> float:
    """One-step Theta method forecast.

    Formula:
        level = SES(values, alpha)[-1]
        slope = (x[n-1] - x[0]) / (n - 1)
        F = (level + x[n-1] + slope) / 2

    Args:
        values: Non-empty observations in chronological order.
        alpha: SES smoothing factor.

    Returns:
        Unclamped forecast.
    """
    n = len(values)
    level = smooth_level(values, alpha)
    slope = (values[-1] - values[0]) / max(1, n - 1)
    trend_forecast = values[-1] + slope
    return (level + trend_forecast) / 2.0
