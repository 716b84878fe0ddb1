"""Seasonal period detection and multiplicative seasonal-index forecasting."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]

DEFAULT_CANDIDATES: tuple[int, ...] = (3, 4, 6, 12)


def pearson_correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation coefficient.

    Returns 0.0 for mismatched or empty inputs and when either side has no
    variance.
    """
    if len(x) != len(y) or len(x) == 0:
        return 0.0

    xa = np.asarray(x, dtype=np.float64)
    ya = np.asarray(y, dtype=np.float64)
    dx = xa - xa.mean()
    dy = ya - ya.mean()
    denominator = float(np.sqrt(np.sum(dx * dx) * np.sum(dy * dy)))
    if denominator == 0:
        return 0.0
    return float(np.sum(dx * dy) / denominator)


def seasonal_correlation(values: Sequence[float], period: int) -> float:
    """Correlation between x[i] and x[i - period] for i >= period."""
    return pearson_correlation(values[period:], values[: len(values) - period])


def detect_seasonal_period(
    values: Sequence[float],
    candidates: Sequence[int] = DEFAULT_CANDIDATES,
    threshold: float = 0.3,
    default_period: int = 4,
) -> int:
    """Return the first candidate period with a strong lag correlation.

    A candidate qualifies when the series spans at least two cycles and the
    lag-period correlation exceeds threshold.

    Args:
        values: Observations in chronological order.
        candidates: Periods tried in order.
        threshold: Correlation a period must exceed.
        default_period: Fallback when no candidate qualifies.

    Returns:
        Detected or default period.
    """
    n = len(values)
    for period in candidates:
        if n >= 2 * period and seasonal_correlation(values, period) > threshold:
            return period
    return default_period


def seasonal_indices(values: Sequence[float], period: int) -> FloatArray:
    """Multiplicative seasonal index per phase, rescaled to sum to period.

    index[k] = mean(x[i] / overall_mean for i = k mod period)

    An overall mean of zero is treated as 1.0. If the raw indices do not sum
    to a positive number every index is 1.0 (neutral pattern). Phases with no
    observations default to 1.0 before rescaling.

    Args:
        values: Observations in chronological order.
        period: Seasonal period (>= 1).

    Returns:
        Array of length period.

    Raises:
        ValueError: If period < 1.
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")

    arr = np.asarray(values, dtype=np.float64)
    overall_mean = float(arr.mean()) if len(arr) else 1.0
    if overall_mean == 0:
        overall_mean = 1.0

    sums = np.zeros(period, dtype=np.float64)
    counts = np.zeros(period, dtype=np.int64)
    for i, value in enumerate(arr):
        sums[i % period] += value / overall_mean
        counts[i % period] += 1

    indices = np.ones(period, dtype=np.float64)
    observed = counts > 0
    indices[observed] = sums[observed] / counts[observed]

    total = float(indices.sum())
    if total > 0:
        return indices * period / total
    return np.ones(period, dtype=np.float64)


def recent_mean(values: Sequence[float], window: int) -> float:
    """Mean of the last window observations (0.0 for an empty series)."""
    if len(values) == 0:
        return 0.0
    start = max(0, len(values) - window)
    return float(np.mean(np.asarray(values[start:], dtype=np.float64)))


@dataclass(frozen=True)
class SeasonalForecast:
    """Seasonal-naive forecast with its decomposition.

    Attributes:
        forecast: Unclamped forecast value.
        period: Seasonal period used.
        indices: Seasonal index per phase.
        level: Recent mean level.
        phase: Phase of the forecast period (n mod period).
    """

    forecast: float
    period: int
    indices: FloatArray
    level: float
    phase: int


def forecast_seasonal(
    values: Sequence[float],
    candidates: Sequence[int] = DEFAULT_CANDIDATES,
    threshold: float = 0.3,
    default_period: int = 4,
) -> SeasonalForecast:
    """Detect a period, decompose, and forecast the next value.

    Formula: F = mean(last min(2p, n)) * index[n mod p]

    Args:
        values: Observations in chronological order.
        candidates: Periods tried during detection.
        threshold: Lag correlation a period must exceed.
        default_period: Fallback period.

    Returns:
        SeasonalForecast.
    """
    n = len(values)
    period = detect_seasonal_period(values, candidates, threshold, default_period)
    indices = seasonal_indices(values, period)
    phase = n % period
    level = recent_mean(values, min(period * 2, n))
    return SeasonalForecast(
        forecast=level * float(indices[phase]),
        period=period,
        indices=indices,
        level=level,
        phase=phase,
    )
