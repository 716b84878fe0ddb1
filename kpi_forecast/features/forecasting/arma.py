"""ARIMA-style fitting: stationarity heuristic, differencing, ARMA(p, q).

The ARMA fit follows the Hannan-Rissanen two-stage least-squares scheme:

1. Fit a long autoregression to the de-meaned series and keep its residuals
   as estimates of the unobserved innovations.
2. Regress the series on its own p lags and q lagged innovations.

Both stages use numpy.linalg.lstsq, which returns the minimum-norm solution
for rank-deficient designs (e.g. a constant differenced series), so flat
inputs forecast their own mean instead of failing.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from kpi_forecast.core.exceptions import ForecastStatus, NumericalFailureError

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]

# Variances below this are treated as zero
VARIANCE_EPSILON = 1e-10


def population_variance(values: Sequence[float]) -> float:
    """Mean squared deviation from the mean (0.0 for an empty slice)."""
    if len(values) == 0:
        return 0.0
    return float(np.var(np.asarray(values, dtype=np.float64)))


def has_variance_shift(values: Sequence[float], ratio_threshold: float = 2.0) -> bool:
    """Decide whether a series is non-stationary and should be differenced.

    The series is split at n // 2 and the population variance of each half is
    compared:
    - both halves flat -> stationary
    - exactly one half flat -> non-stationary
    - max / min variance >= ratio_threshold -> non-stationary

    Args:
        values: Observations in chronological order.
        ratio_threshold: Variance ratio treated as a shift.

    Returns:
        True if the series should be differenced.
    """
    if len(values) < 4:
        return False

    mid = len(values) // 2
    var1 = population_variance(values[:mid])
    var2 = population_variance(values[mid:])

    if var1 < VARIANCE_EPSILON and var2 < VARIANCE_EPSILON:
        return False
    if var1 < VARIANCE_EPSILON or var2 < VARIANCE_EPSILON:
        return True

    return max(var1, var2) / min(var1, var2) >= ratio_threshold


def difference(values: Sequence[float]) -> FloatArray:
    """First-order differencing: diff[i] = x[i+1] - x[i].

    Example: [100, 105, 110] -> [5, 5]
    """
    arr = np.asarray(values, dtype=np.float64)
    if len(arr) < 2:
        return arr
    return np.diff(arr)


def select_orders(n: int) -> tuple[int, int]:
    """Pick ARMA orders from the working series length.

    Args:
        n: Length of the (possibly differenced) series.

    Returns:
        (p, q): AR(2) above 8 points else AR(1); MA(1) above 4 points else MA(0).

    Raises:
        NumericalFailureError: If p + q >= n.
    """
    p = 2 if n > 8 else 1
    q = 1 if n > 4 else 0
    if p + q >= n:
        raise NumericalFailureError(
            f"Not enough data points ({n}) for ARMA({p},{q})",
            status=ForecastStatus.INSUFFICIENT_DEGREES_OF_FREEDOM,
            details={"n": n, "p": p, "q": q},
        )
    return p, q


@dataclass(frozen=True)
class ArmaFit:
    """Fitted ARMA(p, q) model on a de-meaned series.

    Attributes:
        mean: Series mean removed before fitting.
        ar: AR coefficients, ar[0] multiplies the most recent value.
        ma: MA coefficients, ma[0] multiplies the most recent innovation.
        centered: De-meaned training series.
        innovations: Estimated innovations aligned with centered (0 where unknown).
    """

    mean: float
    ar: FloatArray
    ma: FloatArray
    centered: FloatArray
    innovations: FloatArray

    @property
    def p(self) -> int:
        """AR order."""
        return len(self.ar)

    @property
    def q(self) -> int:
        """MA order."""
        return len(self.ma)

    def forecast_one(self) -> float:
        """One-step-ahead forecast on the original (not de-meaned) scale."""
        n = len(self.centered)
        value = self.mean
        for i in range(self.p):
            value += float(self.ar[i]) * float(self.centered[n - 1 - i])
        for j in range(self.q):
            value += float(self.ma[j]) * float(self.innovations[n - 1 - j])
        return value


def _lagged_design(series: FloatArray, lags: int, start: int) -> FloatArray:
    """Rows [x[t-1], ..., x[t-lags]] for t = start..n-1."""
    n = len(series)
    return np.array(
        [[series[t - k] for k in range(1, lags + 1)] for t in range(start, n)],
        dtype=np.float64,
    ).reshape(n - start, lags)


def _solve(design: FloatArray, target: FloatArray) -> FloatArray:
    """Least-squares solve that reports linear-algebra trouble as a numerical failure."""
    try:
        coefs = np.linalg.lstsq(design, target, rcond=None)[0]
    except np.linalg.LinAlgError as e:
        raise NumericalFailureError(f"Least-squares solve failed: {e}") from e
    if not np.all(np.isfinite(coefs)):
        raise NumericalFailureError(
            "ARMA coefficients are not finite",
            status=ForecastStatus.NON_FINITE_FIT,
        )
    return coefs


def fit_arma(values: Sequence[float], p: int, q: int) -> ArmaFit:
    """Fit an ARMA(p, q) model by Hannan-Rissanen least squares.

    Args:
        values: Working series (already differenced if needed).
        p: AR order (>= 1).
        q: MA order (>= 0).

    Returns:
        ArmaFit ready for forecast_one().

    Raises:
        NumericalFailureError: If the design has too few rows or the solve
            yields non-finite coefficients.
    """
    series = np.asarray(values, dtype=np.float64)
    n = len(series)
    if p < 1 or q < 0:
        raise ValueError(f"Invalid ARMA orders p={p}, q={q}")
    if not np.all(np.isfinite(series)):
        raise NumericalFailureError(
            "Series contains non-finite values",
            status=ForecastStatus.NON_FINITE_FIT,
        )

    mean = float(series.mean())
    centered = series - mean
    innovations = np.zeros(n, dtype=np.float64)

    if q == 0:
        if n - p < p:
            raise NumericalFailureError(
                f"Not enough rows ({n - p}) to fit AR({p})",
                status=ForecastStatus.INSUFFICIENT_DEGREES_OF_FREEDOM,
            )
        ar = _solve(_lagged_design(centered, p, p), centered[p:])
        return ArmaFit(
            mean=mean,
            ar=ar,
            ma=np.zeros(0, dtype=np.float64),
            centered=centered,
            innovations=innovations,
        )

    # Stage 1: long autoregression for innovation estimates
    long_order = max(p, q) + 1
    if n - long_order - q < p + q:
        long_order = max(1, n - q - (p + q))
    if n - long_order < long_order:
        raise NumericalFailureError(
            f"Not enough data points ({n}) for ARMA({p},{q})",
            status=ForecastStatus.INSUFFICIENT_DEGREES_OF_FREEDOM,
        )
    long_ar = _solve(_lagged_design(centered, long_order, long_order), centered[long_order:])
    fitted = _lagged_design(centered, long_order, long_order) @ long_ar
    innovations[long_order:] = centered[long_order:] - fitted

    # Stage 2: joint regression on AR lags and lagged innovations
    start = max(p, long_order + q)
    rows = n - start
    if rows < p + q:
        raise NumericalFailureError(
            f"Not enough rows ({rows}) to fit ARMA({p},{q})",
            status=ForecastStatus.INSUFFICIENT_DEGREES_OF_FREEDOM,
        )
    design = np.hstack(
        [
            _lagged_design(centered, p, start),
            _lagged_design(innovations, q, start),
        ]
    )
    coefs = _solve(design, centered[start:])

    return ArmaFit(
        mean=mean,
        ar=coefs[:p],
        ma=coefs[p:],
        centered=centered,
        innovations=innovations,
    )


@dataclass(frozen=True)
class TrendDecomposition:
    """Result of the full ARIMA-style pipeline.

    Attributes:
        forecast: Integrated, unclamped one-step forecast.
        p: AR order used.
        d: Differencing order (0 or 1).
        q: MA order used.
        delta: Raw ARMA forecast on the working series.
    """

    forecast: float
    p: int
    d: int
    q: int
    delta: float


def forecast_trend_decomposition(
    values: Sequence[float], variance_shift_ratio: float = 2.0
) -> TrendDecomposition:
    """Difference if needed, fit ARMA, forecast one step, re-integrate.

    Example: [100, 105, 110, 115, 120] -> differenced to [5, 5, 5, 5],
    AR(1) forecasts 5, integrated forecast 120 + 5 = 125.

    Args:
        values: Raw observations in chronological order.
        variance_shift_ratio: Threshold passed to has_variance_shift.

    Returns:
        TrendDecomposition with the integrated forecast and orders.

    Raises:
        NumericalFailureError: On insufficient degrees of freedom or a
            non-finite fit.
    """
    raw = np.asarray(values, dtype=np.float64)
    d = 1 if has_variance_shift(list(raw), variance_shift_ratio) else 0
    working = difference(raw) if d == 1 else raw

    p, q = select_orders(len(working))
    fit = fit_arma(working, p, q)
    delta = fit.forecast_one()

    forecast = float(raw[-1]) + delta if d == 1 else delta
    if not np.isfinite(forecast):
        raise NumericalFailureError(
            "ARIMA forecast is not finite",
            status=ForecastStatus.NON_FINITE_FIT,
        )
    return TrendDecomposition(forecast=forecast, p=p, d=d, q=q, delta=delta)
