"""Goertzel-based spectral features.

Only a few dozen frequencies in a known band are needed per window, so each
one is evaluated with a single-bin Goertzel recursion instead of a full FFT.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike
from scipy import signal

MIN_SAMPLES = 8
NYQUIST_MARGIN_HZ = 1e-6


def goertzel_power(data: ArrayLike, sample_rate_hz: float, freq_hz: float) -> float:
    """
    Spectral power of ``data`` at ``freq_hz``.

    The signal is mean-removed and the target is snapped to the nearest DFT
    bin ``k = round(n * f / fs)``. Returns 0.0 for fewer than 8 samples or a
    non-positive rate/frequency.
    """
    x = np.asarray(data, dtype=float).reshape(-1)
    n = x.size
    if n < MIN_SAMPLES or sample_rate_hz <= 0 or freq_hz <= 0:
        return 0.0

    k = math.floor(0.5 + n * float(freq_hz) / float(sample_rate_hz))
    w = 2.0 * math.pi * k / n
    cw, sw = math.cos(w), math.sin(w)
    coeff = 2.0 * cw

    # s[i] = x[i] + coeff*s[i-1] - s[i-2]
    s = signal.lfilter([1.0], [1.0, -coeff, 1.0], x - np.mean(x))
    s1, s2 = float(s[-1]), float(s[-2])
    real = s1 - s2 * cw
    imag = s2 * sw
    return real * real + imag * imag


def scan_frequencies(
    sample_rate_hz: float,
    fmin: float,
    fmax: Optional[float],
    bins: int,
) -> np.ndarray:
    """``bins`` frequencies evenly spaced over ``[fmin, min(fmax, fs/2)]``."""
    nyquist = float(sample_rate_hz) / 2.0 - NYQUIST_MARGIN_HZ
    upper = nyquist if fmax is None else min(float(fmax), nyquist)
    if bins <= 1:
        return np.array([float(fmin)])
    return np.linspace(float(fmin), upper, int(bins))


def _scan_powers(
    x: np.ndarray,
    sample_rate_hz: float,
    fmin: float,
    fmax: Optional[float],
    bins: int,
) -> tuple[np.ndarray, np.ndarray]:
    freqs = scan_frequencies(sample_rate_hz, fmin, fmax, bins)
    powers = np.array([goertzel_power(x, sample_rate_hz, f) for f in freqs], dtype=float)
    return freqs, powers


def _usable(x: np.ndarray, sample_rate_hz: float) -> bool:
    return x.size >= MIN_SAMPLES and sample_rate_hz > 0


def dominant_freq_goertzel(
    data: ArrayLike,
    sample_rate_hz: float,
    fmin: float = 0.5,
    fmax: float = 6.0,
    bins: int = 64,
) -> float:
    """Scanned frequency with the highest power; ties go to the lowest frequency."""
    x = np.asarray(data, dtype=float).reshape(-1)
    if not _usable(x, sample_rate_hz):
        return 0.0
    freqs, powers = _scan_powers(x, sample_rate_hz, fmin, fmax, bins)
    # np.argmax returns the first occurrence of the maximum.
    return float(freqs[int(np.argmax(powers))])


def band_energy_goertzel(
    data: ArrayLike,
    sample_rate_hz: float,
    fmin: float,
    fmax: float,
    bins: int = 64,
) -> float:
    """Summed Goertzel power over the scan divided by the signal length."""
    x = np.asarray(data, dtype=float).reshape(-1)
    if not _usable(x, sample_rate_hz):
        return 0.0
    _, powers = _scan_powers(x, sample_rate_hz, fmin, fmax, bins)
    return float(np.sum(powers) / x.size)


def spectral_entropy_goertzel(
    data: ArrayLike,
    sample_rate_hz: float,
    bins: int = 64,
    fmin: float = 0.2,
    fmax: Optional[float] = None,
) -> float:
    """
    Shannon entropy of the scanned power distribution, normalised by ``ln(bins)``.

    1.0 means power is spread evenly across the scan, 0.0 that a single bin
    holds all of it. ``fmax=None`` scans up to Nyquist.
    """
    x = np.asarray(data, dtype=float).reshape(-1)
    if not _usable(x, sample_rate_hz) or bins < 2:
        return 0.0
    _, powers = _scan_powers(x, sample_rate_hz, fmin, fmax, bins)
    total = float(np.sum(powers))
    if total <= 0:
        return 0.0
    q = powers / total
    q = q[q > 0]
    h = float(-np.sum(q * np.log(q)))
    h_norm = h / math.log(bins)
    return h_norm if math.isfinite(h_norm) else 0.0


__all__ = [
    "band_energy_goertzel",
    "dominant_freq_goertzel",
    "goertzel_power",
    "scan_frequencies",
    "spectral_entropy_goertzel",
]
