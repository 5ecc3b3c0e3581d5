"""sensehar: online human-activity recognition from IMU streams.

Samples flow through a sliding window buffer, a gravity-separating feature
extractor with Goertzel spectral descriptors, an external inference backend,
a decision normalizer, and a majority-vote smoother.
"""

from .config import HarConfig, ModelMetadata, load_config, load_metadata
from .core import (
    NO_PREDICTION,
    DecisionNormalizer,
    ImuSample,
    MajoritySmoother,
    PredictionResult,
    Window,
    WindowScheduler,
)
from .core.pipeline import ActivityPipeline
from .inference import CallableBackend, FallbackBackend, SharedBackend

__version__ = "0.1.0"

__all__ = [
    "NO_PREDICTION",
    "ActivityPipeline",
    "CallableBackend",
    "DecisionNormalizer",
    "FallbackBackend",
    "HarConfig",
    "ImuSample",
    "MajoritySmoother",
    "ModelMetadata",
    "PredictionResult",
    "SharedBackend",
    "Window",
    "WindowScheduler",
    "load_config",
    "load_metadata",
]
