"""Stateless numeric primitives for windows of IMU samples.

Every function accepts array-likes and degrades to a defined default (0.0, an
empty array, or the zero vector) instead of raising on empty or degenerate
input. The feature extractor runs on a live stream and must always produce a
vector.
"""

from __future__ import annotations

from typing import Tuple, Union

import numpy as np
from numpy.typing import ArrayLike

Number = Union[float, np.floating]
Vector3 = Tuple[float, float, float]

DEFAULT_FS_HZ = 50.0


def _as_1d(x: ArrayLike) -> np.ndarray:
    return np.asarray(x, dtype=float).reshape(-1)


def mean(x: ArrayLike) -> float:
    arr = _as_1d(x)
    if arr.size == 0:
        return 0.0
    return float(np.mean(arr))


def rms(x: ArrayLike) -> float:
    """Root-mean-square of ``x``; 0.0 for an empty signal."""
    arr = _as_1d(x)
    if arr.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(np.square(arr))))


def _truncate3(x: ArrayLike, y: ArrayLike, z: ArrayLike) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    xa, ya, za = _as_1d(x), _as_1d(y), _as_1d(z)
    n = min(xa.size, ya.size, za.size)
    return xa[:n], ya[:n], za[:n]


def mag3(x: ArrayLike, y: ArrayLike, z: ArrayLike) -> np.ndarray:
    """Per-index Euclidean norm, truncated to the shortest input."""
    xa, ya, za = _truncate3(x, y, z)
    return np.sqrt(xa * xa + ya * ya + za * za)


def derivative(x: ArrayLike, dt: float) -> np.ndarray:
    """
    Backward finite difference ``(x[i] - x[i-1]) / dt``.

    Index 0 copies index 1 so the output has no leading step. A single sample
    yields ``[0.0]``.
    """
    arr = _as_1d(x)
    out = np.zeros_like(arr)
    if arr.size < 2:
        return out
    out[1:] = np.diff(arr) / dt
    out[0] = out[1]
    return out


def norm3(x: float, y: float, z: float, eps: float = 1e-9) -> Vector3:
    """Unit vector along ``(x, y, z)``; the zero vector when the norm is ~0 or not finite."""
    n = float(np.sqrt(x * x + y * y + z * z))
    if not np.isfinite(n) or n <= eps:
        return (0.0, 0.0, 0.0)
    return (x / n, y / n, z / n)


def project_on_axis(ax: ArrayLike, ay: ArrayLike, az: ArrayLike, u: ArrayLike) -> np.ndarray:
    """Signed scalar projection of each 3-vector onto the unit vector ``u``."""
    xa, ya, za = _truncate3(ax, ay, az)
    ux, uy, uz = (float(c) for c in np.asarray(u, dtype=float).reshape(3))
    return xa * ux + ya * uy + za * uz


def horiz_from_vert(
    ax_lin: ArrayLike,
    ay_lin: ArrayLike,
    az_lin: ArrayLike,
    v: ArrayLike,
) -> np.ndarray:
    """Horizontal magnitude ``sqrt(|lin|^2 - v^2)``, clamped at zero."""
    mag = mag3(ax_lin, ay_lin, az_lin)
    vert = _as_1d(v)
    n = min(mag.size, vert.size)
    horiz2 = mag[:n] * mag[:n] - vert[:n] * vert[:n]
    return np.sqrt(np.maximum(0.0, horiz2))


def estimate_fs(timestamps_s: ArrayLike, default: float = DEFAULT_FS_HZ) -> float:
    """
    Estimate the sampling rate as ``1 / median(dt)`` over positive deltas.

    Irregular streams (duplicate timestamps, gaps) are tolerated; fewer than
    two usable timestamps return ``default``.
    """
    t = _as_1d(timestamps_s)
    if t.size < 2:
        return float(default)
    deltas = np.diff(t)
    deltas = np.sort(deltas[deltas > 0])
    if deltas.size == 0:
        return float(default)
    med = float(deltas[deltas.size // 2])
    return 1.0 / med if med > 0 else float(default)


def percentile(values: ArrayLike, p: float) -> float:
    """Percentile ``p`` (0-100) with linear interpolation between sorted values."""
    arr = _as_1d(values)
    if arr.size == 0:
        return 0.0
    return float(np.percentile(arr, min(100.0, max(0.0, float(p)))))


def kurtosis(values: ArrayLike) -> float:
    """Fisher (excess) kurtosis; 0.0 for fewer than four samples or a flat signal."""
    arr = _as_1d(values)
    if arr.size < 4:
        return 0.0
    centred = arr - np.mean(arr)
    m2 = float(np.mean(centred ** 2))
    if m2 == 0.0:
        return 0.0
    m4 = float(np.mean(centred ** 4))
    return m4 / (m2 * m2) - 3.0


__all__ = [
    "DEFAULT_FS_HZ",
    "derivative",
    "estimate_fs",
    "horiz_from_vert",
    "kurtosis",
    "mag3",
    "mean",
    "norm3",
    "percentile",
    "project_on_axis",
    "rms",
]
