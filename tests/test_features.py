import logging
import math

import numpy as np
import pytest

from sensehar.analysis.features import (
    FeatureExtractor,
    looks_like_g_units,
    order_features,
)
from sensehar.config import DEFAULT_FEATURE_ORDER, HarConfig
from sensehar.core.models import ImuSample, Window


def _walk_window(sample_factory, n=250, step_hz=2.0):
    t = np.arange(n) / 50.0
    az = 9.81 + 2.0 * np.sin(2 * np.pi * step_hz * t)
    return Window(tuple(sample_factory(np.zeros(n), np.zeros(n), az)))


def test_empty_window_yields_all_zero_vector() -> None:
    vector = FeatureExtractor().extract(Window())
    assert list(vector) == list(DEFAULT_FEATURE_ORDER)
    assert all(v == 0.0 for v in vector.values())


def test_vector_follows_configured_order(still_samples) -> None:
    order = ("vert_rms", "not_a_feature", "lin_mag_mean")
    vector = FeatureExtractor(HarConfig(feature_order=order)).extract(Window(tuple(still_samples)))
    assert tuple(vector) == order
    assert vector["not_a_feature"] == 0.0


def test_extract_array_is_float32(still_samples) -> None:
    arr = FeatureExtractor().extract_array(Window(tuple(still_samples)))
    assert arr.dtype == np.float32
    assert arr.shape == (len(DEFAULT_FEATURE_ORDER),)
    assert np.all(np.isfinite(arr))


def test_still_window_has_idle_signature(still_samples) -> None:
    vector = FeatureExtractor().extract(Window(tuple(still_samples)))
    assert vector["vert_rms"] < 0.01
    assert vector["lin_mag_rms"] < 0.01
    assert vector["jerk_vert_rms"] < 1.0
    assert vector["gyro_mag_rms"] == 0.0


def test_walking_window_vertical_features(sample_factory) -> None:
    vector = FeatureExtractor().extract(_walk_window(sample_factory))
    assert vector["vert_rms"] > 1.0
    # Motion is purely vertical.
    assert vector["horiz_rms"] < 0.05 * vector["vert_rms"]
    # |sin| exceeds its RMS on half of the samples, split evenly by sign.
    assert 0.4 < vector["vert_impulse_ratio"] < 0.6
    assert abs(vector["impulse_balance"]) < 0.2
    assert abs(vector["percentile_balance"]) < 0.2


def test_walking_magnitude_peaks_at_twice_step_rate(sample_factory) -> None:
    # |lin| of a 2 Hz vertical oscillation is a rectified sine at 4 Hz.
    vector = FeatureExtractor().extract(_walk_window(sample_factory))
    assert 3.5 < vector["lin_mag_dom_freq"] < 4.5


def test_g_unit_input_is_rescaled(still_samples) -> None:
    g_samples = [
        ImuSample(s.timestamp, s.ax / 9.81, s.ay / 9.81, s.az / 9.81) for s in still_samples
    ]
    ex = FeatureExtractor()
    si = ex.extract(Window(tuple(still_samples)))
    g = ex.extract(Window(tuple(g_samples)))
    assert g["vert_rms"] == pytest.approx(si["vert_rms"], rel=1e-6)
    assert g["lin_mag_rms"] == pytest.approx(si["lin_mag_rms"], rel=1e-6)


def test_looks_like_g_units() -> None:
    ones = np.ones(10)
    assert looks_like_g_units(np.zeros(10), np.zeros(10), ones)
    assert not looks_like_g_units(np.zeros(10), np.zeros(10), 9.81 * ones)
    assert not looks_like_g_units(np.zeros(0), np.zeros(0), np.zeros(0))


def test_gyro_magnitude_used_when_present(sample_factory) -> None:
    n = 100
    gyro = (np.zeros(n), np.zeros(n), np.full(n, 0.5))
    samples = sample_factory(np.zeros(n), np.zeros(n), np.full(n, 9.81), gyro=gyro)
    vector = FeatureExtractor().extract(Window(tuple(samples)))
    assert vector["gyro_mag_rms"] == pytest.approx(0.5)


def test_non_finite_values_are_zeroed_and_logged(still_samples, caplog) -> None:
    broken = list(still_samples)
    broken[50] = ImuSample(broken[50].timestamp, math.nan, 0.0, 9.81)
    with caplog.at_level(logging.WARNING, logger="sensehar.analysis.features"):
        vector = FeatureExtractor().extract(Window(tuple(broken)))
    assert all(math.isfinite(v) for v in vector.values())
    assert "Non-finite feature values" in caplog.text


def test_non_finite_values_kept_when_sanitizing_disabled(still_samples) -> None:
    broken = list(still_samples)
    broken[50] = ImuSample(broken[50].timestamp, math.nan, 0.0, 9.81)
    cfg = HarConfig(sanitize_non_finite=False)
    vector = FeatureExtractor(cfg).extract(Window(tuple(broken)))
    assert any(not math.isfinite(v) for v in vector.values())


def test_order_features_defaults_missing_names() -> None:
    ordered = order_features({"b": 2.0, "a": 1.0}, ("a", "c", "b"))
    assert list(ordered.items()) == [("a", 1.0), ("c", 0.0), ("b", 2.0)]
