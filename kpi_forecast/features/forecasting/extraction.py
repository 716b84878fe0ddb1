"""Series extraction and the eligibility gate shared by every model.

Turns an ordered KPI history into a flat list of finite floats. Bubble points,
when an observation has any, replace the observation's scalar value.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from kpi_forecast.core.exceptions import ForecastStatus, IneligibleInputError
from kpi_forecast.core.logging import get_logger
from kpi_forecast.features.forecasting.schemas import Observation

logger = get_logger(__name__)


def parse_numeric(raw: object) -> float | None:
    """Parse a raw KPI value into a finite float.

    Args:
        raw: Number, numeric string, or anything else.

    Returns:
        The float value, or None when the input is missing, non-numeric,
        boolean, NaN or infinite.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(value):
        return None
    return value


def extract_values(series: Sequence[Observation] | None) -> list[float]:
    """Flatten a historical series into ordered numeric observations.

    For each observation, every parseable bubble point size is emitted in order
    when bubble points are present; otherwise the scalar value is used.
    Unparseable entries are skipped.

    Args:
        series: Chronologically ordered observations.

    Returns:
        Ordered list of finite floats (possibly empty).
    """
    if not series:
        return []

    values: list[float] = []
    skipped = 0
    for observation in series:
        if observation.bubble_points:
            for point in observation.bubble_points:
                parsed = parse_numeric(point.size)
                if parsed is None:
                    skipped += 1
                    continue
                values.append(parsed)
        else:
            parsed = parse_numeric(observation.value)
            if parsed is None:
                skipped += 1
                continue
            values.append(parsed)

    if skipped:
        logger.debug(
            "forecasting.values_skipped",
            skipped=skipped,
            extracted=len(values),
        )
    return values


def can_forecast(series: Sequence[Observation] | None, min_points: int) -> bool:
    """Check whether a series carries enough values for a model.

    Args:
        series: Chronologically ordered observations.
        min_points: Minimum number of extracted values the model needs.

    Returns:
        False for a missing or empty series, or when fewer than min_points
        values can be extracted.
    """
    if not series:
        return False
    return len(extract_values(series)) >= min_points


def check_eligibility(series: Sequence[Observation] | None, min_points: int) -> list[float]:
    """Extract values, raising when the series cannot be forecast.

    Args:
        series: Chronologically ordered observations.
        min_points: Minimum number of extracted values the model needs.

    Returns:
        The extracted values.

    Raises:
        IneligibleInputError: If the series is empty or too short.
    """
    if not series:
        raise IneligibleInputError(
            "No historical data",
            status=ForecastStatus.EMPTY_SERIES,
        )

    values = extract_values(series)
    if len(values) < min_points:
        raise IneligibleInputError(
            f"Insufficient data points (need at least {min_points}, got {len(values)})",
            status=ForecastStatus.INSUFFICIENT_DATA,
            details={"required": min_points, "available": len(values)},
        )
    return values
