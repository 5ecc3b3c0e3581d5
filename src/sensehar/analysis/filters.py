"""Filtering helpers."""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import ArrayLike
from scipy import signal


def ema_alpha(sample_rate_hz: float, cutoff_hz: float) -> float:
    """
    Smoothing factor of a first-order RC low-pass sampled at ``sample_rate_hz``.

    ``rc = 1 / (2*pi*fc)``, ``dt = 1 / fs`` and ``alpha = dt / (rc + dt)``.
    A non-positive cutoff freezes the filter at its seed value (alpha = 0).
    """
    if cutoff_hz <= 0:
        return 0.0
    rc = 1.0 / (2.0 * math.pi * float(cutoff_hz))
    dt = 1.0 / float(sample_rate_hz)
    return dt / (rc + dt)


def ema_lowpass(
    data: ArrayLike,
    sample_rate_hz: float,
    cutoff_hz: float = 0.5,
) -> np.ndarray:
    """
    Exponential moving-average low-pass, used to approximate gravity.

    Parameters
    ----------
    data:
        1-D input signal.
    sample_rate_hz:
        Sampling rate in Hz. A non-positive rate returns zeros.
    cutoff_hz:
        Corner frequency in Hz (default: 0.5).

    Returns
    -------
    np.ndarray
        ``y[0] = x[0]`` and ``y[i] = y[i-1] + alpha * (x[i] - y[i-1])``.
    """
    x = np.asarray(data, dtype=float).reshape(-1)
    if x.size == 0 or sample_rate_hz <= 0:
        return np.zeros_like(x)

    alpha = ema_alpha(sample_rate_hz, cutoff_hz)
    # y[i] = alpha*x[i] + (1 - alpha)*y[i-1]; zi seeds the state so y[0] == x[0].
    b = [alpha]
    a = [1.0, alpha - 1.0]
    zi = [(1.0 - alpha) * x[0]]
    y, _ = signal.lfilter(b, a, x, zi=zi)
    return y
