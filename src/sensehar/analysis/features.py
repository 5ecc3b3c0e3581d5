"""Feature extraction for one analysis window."""

from __future__ import annotations

import logging
import math
from collections import OrderedDict
from typing import Dict, Iterable, Mapping, Optional, Sequence

import numpy as np

from ..config.runtime import DEFAULT_FEATURE_ORDER, HarConfig
from ..core.models import Window
from . import signal_ops as ops
from .filters import ema_lowpass
from .spectral import (
    band_energy_goertzel,
    dominant_freq_goertzel,
    spectral_entropy_goertzel,
)

logger = logging.getLogger(__name__)

STANDARD_GRAVITY = 9.81

# Median |a| inside this open interval means the window is expressed in g.
G_UNIT_RANGE = (0.5, 2.0)

_EPS = 1e-9

FeatureVector = Dict[str, float]


def looks_like_g_units(ax: np.ndarray, ay: np.ndarray, az: np.ndarray) -> bool:
    """
    Guess whether acceleration is in g rather than m/s^2.

    This is a heuristic, not a calibration: at rest |a| is ~1 in g and ~9.81
    in SI, and typical activity keeps the median close to gravity.
    """
    mag = ops.mag3(ax, ay, az)
    if mag.size == 0:
        return False
    med = float(np.median(mag))
    lo, hi = G_UNIT_RANGE
    return lo < med < hi


def _safe_ratio(num: float, den: float) -> float:
    return num / den if abs(den) > _EPS else 0.0


def zero_features(names: Iterable[str] = DEFAULT_FEATURE_ORDER) -> FeatureVector:
    return OrderedDict((name, 0.0) for name in names)


def order_features(
    features: Mapping[str, float],
    feature_order: Sequence[str],
) -> FeatureVector:
    """Arrange ``features`` in ``feature_order``; names that were not computed become 0.0."""
    missing = [name for name in feature_order if name not in features]
    if missing:
        logger.debug("Features not computed, defaulting to 0.0: %s", missing)
    return OrderedDict((name, float(features.get(name, 0.0))) for name in feature_order)


def non_finite_names(features: Mapping[str, float]) -> list[str]:
    return [name for name, value in features.items() if not math.isfinite(value)]


class FeatureExtractor:
    """
    Turn a :class:`Window` of IMU samples into a named feature vector.

    Gravity is separated with an EMA low-pass, the linear acceleration is
    split into vertical (along the window's mean gravity direction) and
    horizontal parts, and spectral descriptors of the linear magnitude are
    evaluated with Goertzel scans.
    """

    def __init__(self, config: Optional[HarConfig] = None) -> None:
        self.config = (config or HarConfig()).sanitized()

    @property
    def feature_order(self) -> tuple[str, ...]:
        return self.config.feature_order

    def compute(self, window: Window) -> FeatureVector:
        """Compute every known feature for ``window`` (default order, unsanitized)."""
        if len(window) == 0:
            return zero_features()

        cfg = self.config
        fs = ops.estimate_fs(window.timestamps(), default=cfg.default_fs)

        ax, ay, az = window.axis("ax"), window.axis("ay"), window.axis("az")
        if looks_like_g_units(ax, ay, az):
            ax, ay, az = ax * STANDARD_GRAVITY, ay * STANDARD_GRAVITY, az * STANDARD_GRAVITY

        grav_x = ema_lowpass(ax, fs, cfg.gravity_cutoff_hz)
        grav_y = ema_lowpass(ay, fs, cfg.gravity_cutoff_hz)
        grav_z = ema_lowpass(az, fs, cfg.gravity_cutoff_hz)
        lin_x, lin_y, lin_z = ax - grav_x, ay - grav_y, az - grav_z

        lin_mag = ops.mag3(lin_x, lin_y, lin_z)
        if window.has_gyro:
            gyro_mag = ops.mag3(window.axis("gx"), window.axis("gy"), window.axis("gz"))
        else:
            gyro_mag = np.zeros(0)

        dt = 1.0 / fs
        jerk_x = ops.derivative(lin_x, dt)
        jerk_y = ops.derivative(lin_y, dt)
        jerk_z = ops.derivative(lin_z, dt)
        jerk_mag = ops.mag3(jerk_x, jerk_y, jerk_z)

        # One static gravity direction per window.
        up = ops.norm3(ops.mean(grav_x), ops.mean(grav_y), ops.mean(grav_z))
        vert = ops.project_on_axis(lin_x, lin_y, lin_z, up)
        jerk_vert = ops.project_on_axis(jerk_x, jerk_y, jerk_z, up)
        horiz = ops.horiz_from_vert(lin_x, lin_y, lin_z, vert)

        vert_rms = ops.rms(vert)
        horiz_rms = ops.rms(horiz)
        p05 = ops.percentile(vert, 5)
        p95 = ops.percentile(vert, 95)
        pos_impulses = int(np.count_nonzero(vert > vert_rms))
        neg_impulses = int(np.count_nonzero(vert < -vert_rms))

        feats: FeatureVector = OrderedDict()
        feats["lin_mag_mean"] = ops.mean(lin_mag)
        feats["lin_mag_rms"] = ops.rms(lin_mag)
        feats["lin_mag_dom_freq"] = dominant_freq_goertzel(
            lin_mag, fs, fmin=cfg.fmin, fmax=cfg.fmax, bins=cfg.bins
        )
        feats["lin_mag_band_energy"] = band_energy_goertzel(
            lin_mag, fs, cfg.fmin, cfg.fmax, bins=cfg.bins
        )
        feats["lin_mag_spectral_entropy"] = spectral_entropy_goertzel(
            lin_mag, fs, bins=cfg.bins, fmin=cfg.entropy_fmin
        )
        feats["vert_mean"] = ops.mean(vert)
        feats["vert_rms"] = vert_rms
        feats["horiz_rms"] = horiz_rms
        feats["vert_horiz_ratio"] = _safe_ratio(vert_rms, horiz_rms)
        feats["gyro_mag_rms"] = ops.rms(gyro_mag)
        feats["vert_p05"] = p05
        feats["vert_p95"] = p95
        feats["vert_peak_ratio"] = _safe_ratio(p95 - p05, vert_rms)
        feats["vert_pos_impulses"] = float(pos_impulses)
        feats["vert_neg_impulses"] = float(neg_impulses)
        feats["vert_impulse_ratio"] = _safe_ratio(pos_impulses + neg_impulses, vert.size)
        feats["jerk_mag_rms"] = ops.rms(jerk_mag)
        feats["jerk_vert_rms"] = ops.rms(jerk_vert)
        feats["impulse_balance"] = _safe_ratio(
            pos_impulses - neg_impulses, pos_impulses + neg_impulses
        )
        feats["percentile_balance"] = _safe_ratio(p95 + p05, p95 - p05)
        return feats

    def extract(self, window: Window) -> FeatureVector:
        """
        Return the feature vector in the configured order.

        Non-finite values are logged and, unless ``sanitize_non_finite`` is
        off, replaced with 0.0.
        """
        vector = order_features(self.compute(window), self.feature_order)
        bad = non_finite_names(vector)
        if bad:
            logger.warning("Non-finite feature values in window of %d samples: %s", len(window), bad)
            if self.config.sanitize_non_finite:
                for name in bad:
                    vector[name] = 0.0
        return vector

    def extract_array(self, window: Window) -> np.ndarray:
        """Feature vector as a float32 array ready for a backend."""
        return np.fromiter(self.extract(window).values(), dtype=np.float32)


__all__ = [
    "FeatureExtractor",
    "FeatureVector",
    "G_UNIT_RANGE",
    "STANDARD_GRAVITY",
    "looks_like_g_units",
    "non_finite_names",
    "order_features",
    "zero_features",
]
