import pathlib
import sys

import numpy as np
import pytest

# Ensure src/ is on path for direct test execution
ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from sensehar.core.models import ImuSample  # noqa: E402


def make_samples(ax, ay, az, fs=50.0, t0=0.0, gyro=None):
    """Build evenly spaced samples from per-axis arrays."""
    ax, ay, az = (np.asarray(v, dtype=float) for v in (ax, ay, az))
    samples = []
    for i in range(ax.size):
        g = (None, None, None) if gyro is None else tuple(float(v[i]) for v in gyro)
        samples.append(ImuSample(t0 + i / fs, float(ax[i]), float(ay[i]), float(az[i]), *g))
    return samples


@pytest.fixture
def still_samples():
    """Four seconds of a phone lying flat: gravity on z, tiny noise."""
    n = 200
    rng = np.random.default_rng(7)
    noise = 0.001 * rng.standard_normal((3, n))
    return make_samples(noise[0], noise[1], 9.81 + noise[2])


@pytest.fixture
def sample_factory():
    return make_samples
