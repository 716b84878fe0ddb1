"""Hand-rolled gated recurrent cell trained by gradient descent.

Pipeline (run fresh on every call, nothing persisted):
1. Min-max scale the series into [0, 1]
2. Slice supervised windows x[i-L..i-1] -> x[i]
3. Train a single-layer gated cell on the windows
4. Predict from the most recent window and scale back

Parameters and state are immutable values: every step and every weight
update returns a new object, so independent series can be trained in
parallel without sharing anything.

CRITICAL: Weight initialisation draws from an injected numpy Generator.
The same seed and input always yield the same forecast.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

import numpy as np

from kpi_forecast.core.exceptions import (
    ForecastStatus,
    IneligibleInputError,
    NumericalFailureError,
)
from kpi_forecast.core.logging import get_logger

logger = get_logger(__name__)

FloatArray = np.ndarray[Any, np.dtype[np.floating[Any]]]

# Range below which a series is treated as constant
DEGENERATE_RANGE = 1e-10
# Normalised value assigned to every point of a constant series
DEGENERATE_FILL = 0.5
SIGMOID_CLAMP = 500.0
INITIAL_BIAS = 0.1
WEIGHT_SCALE = 0.1
INPUT_UPDATE_SCALE = 0.1

# Gate mixing factors for the hidden contribution and the bias
FORGET_MIX = 0.5
OUTPUT_MIX = 0.8
CANDIDATE_HIDDEN_MIX = 0.3


def sigmoid(x: FloatArray | float) -> FloatArray | float:
    """Logistic function with the input clamped to [-500, 500]."""
    return 1.0 / (1.0 + np.exp(-np.clip(x, -SIGMOID_CLAMP, SIGMOID_CLAMP)))


def _frozen(arr: FloatArray) -> FloatArray:
    """Return a read-only float64 copy of arr."""
    out = np.array(arr, dtype=np.float64, copy=True)
    out.setflags(write=False)
    return out


def _seal(arr: FloatArray) -> FloatArray:
    """Mark a freshly computed array read-only in place, without copying."""
    arr.setflags(write=False)
    return arr


# =============================================================================
# Normalisation and windowing
# =============================================================================


@dataclass(frozen=True)
class MinMaxScaler:
    """Min-max scaling into [0, 1] with a constant-series guard.

    Attributes:
        minimum: Smallest observed value.
        maximum: Largest observed value.
    """

    minimum: float
    maximum: float

    @classmethod
    def fit(cls, values: Sequence[float]) -> MinMaxScaler:
        """Record the range of a non-empty series."""
        if len(values) == 0:
            raise ValueError("Cannot fit scaler on empty series")
        arr = np.asarray(values, dtype=np.float64)
        return cls(minimum=float(arr.min()), maximum=float(arr.max()))

    @property
    def value_range(self) -> float:
        """maximum - minimum."""
        return self.maximum - self.minimum

    @property
    def is_degenerate(self) -> bool:
        """True when the series is effectively constant."""
        return self.value_range < DEGENERATE_RANGE

    def transform(self, values: Sequence[float]) -> FloatArray:
        """Scale values into [0, 1]; a constant series maps to 0.5 everywhere."""
        arr = np.asarray(values, dtype=np.float64)
        if self.is_degenerate:
            return np.full(len(arr), DEGENERATE_FILL, dtype=np.float64)
        return (arr - self.minimum) / self.value_range

    def inverse_transform(self, value: float) -> float:
        """Formula: value * (max - min) + min."""
        return value * self.value_range + self.minimum


def effective_lookback(n: int, lookback_window: int) -> int:
    """Window length actually used: min(lookback_window, n - 2)."""
    return min(lookback_window, n - 2)


def make_windows(data: Sequence[float], lookback: int) -> tuple[FloatArray, FloatArray]:
    """Build supervised pairs data[i-L..i-1] -> data[i] for i = L..n-1.

    Example with lookback=3:
        [1, 2, 3, 4, 5, 6] -> [1,2,3]->4, [2,3,4]->5, [3,4,5]->6

    Args:
        data: Normalised series.
        lookback: Window length L (>= 1).

    Returns:
        (inputs of shape [W, L], targets of shape [W]).
    """
    arr = np.asarray(data, dtype=np.float64)
    if lookback < 1 or len(arr) <= lookback:
        return np.zeros((0, max(lookback, 0)), dtype=np.float64), np.zeros(0, dtype=np.float64)

    inputs = np.array([arr[i - lookback : i] for i in range(lookback, len(arr))])
    targets = arr[lookback:].copy()
    return inputs, targets


# =============================================================================
# Cell parameters and state
# =============================================================================


@dataclass(frozen=True)
class CellParams:
    """Immutable weights of the recurrent cell.

    Attributes:
        input_weights: Shape [hidden_size, input_size].
        hidden_weights: Shape [hidden_size, hidden_size].
        bias: Shape [hidden_size].
    """

    input_weights: FloatArray
    hidden_weights: FloatArray
    bias: FloatArray

    @classmethod
    def initialize(
        cls, input_size: int, hidden_size: int, rng: np.random.Generator
    ) -> CellParams:
        """Small uniform weights in [-0.05, 0.05) and biases of 0.1."""
        input_weights = (rng.random((hidden_size, input_size)) - 0.5) * WEIGHT_SCALE
        hidden_weights = (rng.random((hidden_size, hidden_size)) - 0.5) * WEIGHT_SCALE
        return cls(
            input_weights=_frozen(input_weights),
            hidden_weights=_frozen(hidden_weights),
            bias=_frozen(np.full(hidden_size, INITIAL_BIAS)),
        )

    @property
    def hidden_size(self) -> int:
        """Number of hidden units."""
        return len(self.bias)


@dataclass(frozen=True)
class CellState:
    """Immutable hidden and cell state."""

    hidden: FloatArray
    cell: FloatArray

    @classmethod
    def zeros(cls, hidden_size: int) -> CellState:
        """Fresh all-zero state."""
        return cls(
            hidden=_seal(np.zeros(hidden_size)),
            cell=_seal(np.zeros(hidden_size)),
        )


def cell_step(params: CellParams, state: CellState, x: float) -> CellState:
    """Advance the cell by one scalar timestep.

    For every hidden unit i:
        hc   = hidden_weights[i] . h
        base = input_weights[i][0] * x
        in   = sigmoid(base + hc + b)
        fg   = sigmoid(base + 0.5 hc + 0.5 b)
        out  = sigmoid(base + 0.8 hc + 0.8 b)
        cand = tanh(base + 0.3 hc)
        c'   = fg * c + in * cand
        h'   = out * tanh(c')

    The input is a single value, so only the first input-weight column
    takes part in the dot product.
    """
    hidden_contrib = params.hidden_weights @ state.hidden
    base = params.input_weights[:, 0] * x
    bias = params.bias

    input_gate = sigmoid(base + hidden_contrib + bias)
    forget_gate = sigmoid(base + FORGET_MIX * hidden_contrib + FORGET_MIX * bias)
    output_gate = sigmoid(base + OUTPUT_MIX * hidden_contrib + OUTPUT_MIX * bias)
    candidate = np.tanh(base + CANDIDATE_HIDDEN_MIX * hidden_contrib)

    new_cell = forget_gate * state.cell + input_gate * candidate
    new_hidden = output_gate * np.tanh(new_cell)
    return CellState(hidden=_seal(new_hidden), cell=_seal(new_cell))


def run_window(params: CellParams, window: Sequence[float]) -> CellState:
    """Fold a window through the cell from a zero state."""
    state = CellState.zeros(params.hidden_size)
    for x in window:
        state = cell_step(params, state, float(x))
    return state


def predict_window(params: CellParams, window: Sequence[float]) -> tuple[float, CellState]:
    """Normalised prediction for one window: sigmoid(mean(final hidden state)).

    Returns:
        (prediction, final state).
    """
    state = run_window(params, window)
    return float(sigmoid(float(np.mean(state.hidden)))), state


def apply_update(
    params: CellParams,
    window: FloatArray,
    error: float,
    final_hidden: FloatArray,
    learning_rate: float,
) -> CellParams:
    """Return parameters after one simplified gradient step.

    Update rules (error = target - prediction):
        bias[i]            += lr * error * h[i]
        input_weights[i][j] += lr * error * window[j] * 0.1

    Hidden weights are left unchanged.
    """
    step = learning_rate * error
    bias = params.bias + step * final_hidden
    input_weights = params.input_weights + (
        step * INPUT_UPDATE_SCALE * np.asarray(window, dtype=np.float64)[np.newaxis, :]
    )
    return replace(params, input_weights=_seal(input_weights), bias=_seal(bias))


# =============================================================================
# Training
# =============================================================================


@dataclass(frozen=True)
class TrainingReport:
    """Summary of a training run.

    Attributes:
        epochs_run: Number of completed epochs.
        epoch_limit: min(max_epochs, 10 * windows).
        final_loss: Average squared error of the last epoch.
        stopped_early: Loss plateaued for `patience` epochs.
        deadline_reached: Wall-clock budget ran out.
    """

    epochs_run: int
    epoch_limit: int
    final_loss: float
    stopped_early: bool = False
    deadline_reached: bool = False


def train(
    params: CellParams,
    inputs: FloatArray,
    targets: FloatArray,
    learning_rate: float = 0.01,
    max_epochs: int = 100,
    patience: int = 10,
    tolerance: float = 1e-6,
    deadline_seconds: float | None = None,
) -> tuple[CellParams, TrainingReport]:
    """Train the cell over all windows with early stopping.

    Runs up to min(max_epochs, 10 * windows) epochs. Training stops once the
    average epoch loss changed by less than tolerance for `patience`
    consecutive epochs, or when deadline_seconds have elapsed.

    Args:
        params: Initial parameters.
        inputs: Windows, shape [W, L].
        targets: Targets, shape [W].
        learning_rate: Gradient step size.
        max_epochs: Epoch cap.
        patience: Flat epochs tolerated before stopping.
        tolerance: Loss change treated as flat.
        deadline_seconds: Optional wall-clock budget.

    Returns:
        (trained parameters, TrainingReport).

    Raises:
        NumericalFailureError: If the loss becomes non-finite.
    """
    n_windows = len(targets)
    epoch_limit = min(max_epochs, n_windows * 10)
    started = time.monotonic()

    prev_loss = float("inf")
    avg_loss = float("nan")
    stagnant = 0
    epochs_run = 0

    for epoch in range(epoch_limit):
        total_loss = 0.0
        for window, target in zip(inputs, targets, strict=True):
            prediction, state = predict_window(params, window)
            total_loss += float((prediction - target) ** 2)
            params = apply_update(
                params, window, float(target - prediction), state.hidden, learning_rate
            )

        avg_loss = total_loss / n_windows
        epochs_run = epoch + 1
        if not np.isfinite(avg_loss):
            raise NumericalFailureError(
                "Training loss is not finite",
                status=ForecastStatus.NON_FINITE_FIT,
                details={"epoch": epoch},
            )

        if epoch % 20 == 0:
            logger.debug("forecasting.lstm_epoch", epoch=epoch, loss=round(avg_loss, 6))

        if abs(prev_loss - avg_loss) < tolerance:
            stagnant += 1
            if stagnant >= patience:
                logger.debug(
                    "forecasting.lstm_early_stop", epoch=epoch, loss=round(avg_loss, 6)
                )
                return params, TrainingReport(
                    epochs_run=epochs_run,
                    epoch_limit=epoch_limit,
                    final_loss=avg_loss,
                    stopped_early=True,
                )
        else:
            stagnant = 0
        prev_loss = avg_loss

        if deadline_seconds is not None and time.monotonic() - started >= deadline_seconds:
            logger.warning(
                "forecasting.lstm_deadline_reached",
                epoch=epoch,
                deadline_seconds=deadline_seconds,
            )
            return params, TrainingReport(
                epochs_run=epochs_run,
                epoch_limit=epoch_limit,
                final_loss=avg_loss,
                deadline_reached=True,
            )

    return params, TrainingReport(
        epochs_run=epochs_run, epoch_limit=epoch_limit, final_loss=avg_loss
    )


# =============================================================================
# End-to-end forecast
# =============================================================================


@dataclass(frozen=True)
class SequenceForecast:
    """Sequence-model forecast with training diagnostics.

    Attributes:
        forecast: Denormalised, unclamped forecast.
        normalized: Prediction on the [0, 1] scale.
        lookback: Window length used.
        scaler: Scaler fitted on the input series.
        report: Training summary.
    """

    forecast: float
    normalized: float
    lookback: int
    scaler: MinMaxScaler
    report: TrainingReport


def forecast_sequence(
    values: Sequence[float],
    rng: np.random.Generator,
    lookback_window: int = 3,
    hidden_size: int = 12,
    learning_rate: float = 0.01,
    max_epochs: int = 100,
    patience: int = 10,
    tolerance: float = 1e-6,
    deadline_seconds: float | None = None,
) -> SequenceForecast:
    """Normalise, window, train and predict the next value.

    Args:
        values: Raw observations in chronological order.
        rng: Random source for weight initialisation.
        lookback_window: Upper bound on window length.
        hidden_size: Hidden units.
        learning_rate: Gradient step size.
        max_epochs: Epoch cap.
        patience: Flat epochs before early stopping.
        tolerance: Loss change treated as flat.
        deadline_seconds: Optional training budget.

    Returns:
        SequenceForecast.

    Raises:
        IneligibleInputError: If fewer than two windows can be built.
        NumericalFailureError: If training diverges.
    """
    if len(values) == 0:
        raise IneligibleInputError(
            "No values to forecast", status=ForecastStatus.EMPTY_SERIES
        )

    scaler = MinMaxScaler.fit(values)
    normalized = scaler.transform(values)

    lookback = effective_lookback(len(values), lookback_window)
    inputs, targets = make_windows(normalized, lookback)
    if len(targets) < 2:
        raise IneligibleInputError(
            f"Insufficient sequences for training (got {len(targets)}, need 2)",
            status=ForecastStatus.INSUFFICIENT_WINDOWS,
            details={"windows": len(targets), "lookback": lookback},
        )

    params = CellParams.initialize(lookback, hidden_size, rng)
    params, report = train(
        params,
        inputs,
        targets,
        learning_rate=learning_rate,
        max_epochs=max_epochs,
        patience=patience,
        tolerance=tolerance,
        deadline_seconds=deadline_seconds,
    )

    prediction, _ = predict_window(params, normalized[-lookback:])
    return SequenceForecast(
        forecast=scaler.inverse_transform(prediction),
        normalized=prediction,
        lookback=lookback,
        scaler=scaler,
        report=report,
    )
