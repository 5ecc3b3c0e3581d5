import math

import numpy as np
import pytest

from sensehar.analysis import signal_ops as ops
from sensehar.analysis.filters import ema_alpha, ema_lowpass


def test_mean_and_rms_of_empty_are_zero() -> None:
    assert ops.mean([]) == 0.0
    assert ops.rms([]) == 0.0


def test_rms_of_constant_is_its_magnitude() -> None:
    assert ops.rms([-3.0, 3.0, 3.0]) == pytest.approx(3.0)


def test_mag3_truncates_to_shortest_input() -> None:
    out = ops.mag3([3.0, 1.0, 9.0], [4.0, 0.0], [0.0, 0.0, 0.0, 5.0])
    np.testing.assert_allclose(out, [5.0, 1.0])


def test_derivative_copies_second_value_into_first() -> None:
    out = ops.derivative([0.0, 1.0, 3.0, 6.0], dt=0.5)
    np.testing.assert_allclose(out, [2.0, 2.0, 4.0, 6.0])


def test_derivative_edge_lengths() -> None:
    assert ops.derivative([], 0.02).size == 0
    np.testing.assert_array_equal(ops.derivative([4.2], 0.02), [0.0])


def test_norm3_unit_and_degenerate() -> None:
    assert ops.norm3(0.0, 3.0, 4.0) == pytest.approx((0.0, 0.6, 0.8))
    assert ops.norm3(0.0, 0.0, 0.0) == (0.0, 0.0, 0.0)
    assert ops.norm3(math.nan, 1.0, 0.0) == (0.0, 0.0, 0.0)
    assert ops.norm3(math.inf, 1.0, 0.0) == (0.0, 0.0, 0.0)


def test_project_and_horizontal_split() -> None:
    ax, ay, az = [3.0, 0.0], [4.0, 0.0], [0.0, -2.0]
    up = (0.0, 0.0, 1.0)
    vert = ops.project_on_axis(ax, ay, az, up)
    np.testing.assert_allclose(vert, [0.0, -2.0])
    horiz = ops.horiz_from_vert(ax, ay, az, vert)
    np.testing.assert_allclose(horiz, [5.0, 0.0])


def test_horizontal_never_negative_under_rounding() -> None:
    # |v| marginally larger than |lin| must clamp to zero, not NaN.
    horiz = ops.horiz_from_vert([1.0], [0.0], [0.0], [1.0 + 1e-12])
    assert horiz[0] == 0.0


def test_estimate_fs_from_20ms_spacing() -> None:
    t = np.arange(100) * 0.02
    assert ops.estimate_fs(t) == pytest.approx(50.0, abs=1e-6)


def test_estimate_fs_ignores_duplicates_and_uses_default() -> None:
    assert ops.estimate_fs([1.0]) == 50.0
    assert ops.estimate_fs([1.0, 1.0, 1.0]) == 50.0
    assert ops.estimate_fs([0.0, 0.01, 0.01, 0.02, 0.03]) == pytest.approx(100.0)
    assert ops.estimate_fs([], default=25.0) == 25.0


def test_percentile_is_monotonic_and_interpolates() -> None:
    values = np.random.default_rng(3).normal(size=57)
    ps = np.linspace(0, 100, 41)
    results = [ops.percentile(values, p) for p in ps]
    assert all(a <= b for a, b in zip(results, results[1:]))
    assert ops.percentile([0.0, 10.0], 25) == pytest.approx(2.5)
    assert ops.percentile([], 50) == 0.0


def test_kurtosis_of_flat_and_short_signals() -> None:
    assert ops.kurtosis([1.0, 1.0, 1.0, 1.0]) == 0.0
    assert ops.kurtosis([1.0, 2.0]) == 0.0
    # Two-point symmetric distribution has excess kurtosis -2.
    assert ops.kurtosis([-1.0, 1.0, -1.0, 1.0]) == pytest.approx(-2.0)


def test_ema_lowpass_matches_recurrence() -> None:
    x = np.array([0.0, 1.0, 1.0, 1.0, 5.0])
    fs, fc = 50.0, 0.5
    alpha = ema_alpha(fs, fc)
    expected = [x[0]]
    for v in x[1:]:
        expected.append(expected[-1] + alpha * (v - expected[-1]))
    np.testing.assert_allclose(ema_lowpass(x, fs, fc), expected)


def test_ema_lowpass_converges_on_constant_input() -> None:
    y = ema_lowpass(np.full(500, 9.81), 50.0, 0.5)
    np.testing.assert_allclose(y, 9.81)


def test_ema_lowpass_degenerate_inputs() -> None:
    assert ema_lowpass([], 50.0).size == 0
    np.testing.assert_array_equal(ema_lowpass([1.0, 2.0], 0.0), [0.0, 0.0])
