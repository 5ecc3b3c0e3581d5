"""Fixed-shape time-series tensors for sequence models.

These are plain reshape/pad operations with no filtering: ``steps`` rows of
per-sample channels, zero-padded when the window is short and truncated when
it is long.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Sequence, Union

import numpy as np
from numpy.typing import ArrayLike

from ..core.models import ImuSample, Window
from .signal_ops import kurtosis

DEFAULT_STEPS = 100

TENSOR_COLUMNS = (
    "accelerometer_x",
    "accelerometer_y",
    "accelerometer_z",
    "accelerometer_magnitude",
)

ENHANCED_COLUMNS = TENSOR_COLUMNS + (
    "accelerometer_density",
    "accelerometer_x_kurtosis",
    "accelerometer_y_kurtosis",
    "accelerometer_z_kurtosis",
)

SampleSource = Union[Window, Sequence[ImuSample]]


def _acc_columns(source: SampleSource, steps: int) -> np.ndarray:
    samples = source.samples if isinstance(source, Window) else tuple(source)
    n = min(len(samples), steps)
    acc = np.zeros((steps, 3), dtype=np.float64)
    for i in range(n):
        s = samples[i]
        acc[i] = (s.ax, s.ay, s.az)
    return acc


def time_series_tensor(source: SampleSource, steps: int = DEFAULT_STEPS) -> np.ndarray:
    """Return a ``(steps, 4)`` array of ``[ax, ay, az, |a|]`` rows."""
    acc = _acc_columns(source, steps)
    mag = np.sqrt(np.sum(acc * acc, axis=1, keepdims=True))
    return np.hstack([acc, mag])


def enhanced_time_series_tensor(source: SampleSource, steps: int = DEFAULT_STEPS) -> np.ndarray:
    """
    Return a ``(steps, 8)`` array extending :func:`time_series_tensor`.

    Extra columns are ``|a| / sqrt(3)`` and the window-wide kurtosis of each
    axis (constant down the column). Padding rows stay all-zero.
    """
    samples = source.samples if isinstance(source, Window) else tuple(source)
    n = min(len(samples), steps)
    base = time_series_tensor(samples, steps)

    kurt = [
        kurtosis([getattr(s, axis) for s in samples])
        for axis in ("ax", "ay", "az")
    ]
    out = np.zeros((steps, len(ENHANCED_COLUMNS)), dtype=np.float64)
    out[:, :4] = base
    out[:n, 4] = base[:n, 3] / math.sqrt(3.0)
    out[:n, 5:] = kurt
    return out


# input_mode -> (builder, column names)
TENSOR_MODES = {
    "tensor": (time_series_tensor, TENSOR_COLUMNS),
    "tensor_enhanced": (enhanced_time_series_tensor, ENHANCED_COLUMNS),
}


def standardize(tensor: ArrayLike, mean: ArrayLike, scale: ArrayLike) -> np.ndarray:
    """
    Apply a fitted StandardScaler: ``(x - mean) / scale`` per column.

    Columns with a zero scale are only centred.
    """
    x = np.asarray(tensor, dtype=np.float64)
    mu = np.asarray(mean, dtype=np.float64).reshape(-1)
    sigma = np.asarray(scale, dtype=np.float64).reshape(-1)
    if mu.size != x.shape[-1] or sigma.size != x.shape[-1]:
        raise ValueError(
            f"scaler has {mu.size}/{sigma.size} parameters for {x.shape[-1]} columns"
        )
    safe_sigma = np.where(sigma == 0.0, 1.0, sigma)
    return (x - mu) / safe_sigma


def tensor_to_rows(
    tensor: ArrayLike,
    timestamp: str,
) -> Iterable[List[object]]:
    """Yield ``[timestamp, sample_index, *values]`` rows for CSV debugging dumps."""
    arr = np.asarray(tensor, dtype=np.float64)
    for i, row in enumerate(arr):
        yield [timestamp, i, *(f"{v:.6f}" for v in row)]


__all__ = [
    "DEFAULT_STEPS",
    "ENHANCED_COLUMNS",
    "TENSOR_COLUMNS",
    "TENSOR_MODES",
    "enhanced_time_series_tensor",
    "standardize",
    "tensor_to_rows",
    "time_series_tensor",
]
