"""Signal analysis: filtering, Goertzel spectra, and feature extraction.

Modules here operate on NumPy arrays of IMU samples and keep no state between
calls, so they can be reused by the live pipeline, offline replay, and tests
alike:

- :mod:`signal_ops` numeric primitives (RMS, projections, rate estimate)
- :mod:`filters` EMA low-pass used for gravity separation
- :mod:`spectral` single-bin Goertzel power and band descriptors
- :mod:`features` window -> named feature vector
- :mod:`tensor` window -> fixed-shape time-series tensor
"""

from .features import FeatureExtractor, FeatureVector
from .tensor import enhanced_time_series_tensor, standardize, time_series_tensor

__all__ = [
    "FeatureExtractor",
    "FeatureVector",
    "enhanced_time_series_tensor",
    "standardize",
    "time_series_tensor",
]
