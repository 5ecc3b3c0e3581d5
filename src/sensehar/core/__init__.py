"""Core streaming pieces: data model, window scheduling, and decisions.

This package sits between the sensor stream and the presentation layer. It
owns the sliding sample buffer and hop scheduler, reconciles raw backend
outputs into class distributions, and smooths labels over recent cycles.
:class:`~sensehar.core.pipeline.ActivityPipeline` wires them together and is
imported from :mod:`sensehar.core.pipeline` (or the top-level package).
"""

from .decision import (
    DecisionNormalizer,
    KeyedScoresOutput,
    LabelOutput,
    LabelScoresOutput,
    NestedScoresOutput,
    RawOutput,
    ScoresOutput,
    coerce_raw_output,
)
from .models import NO_PREDICTION, ImuSample, PredictionResult, Window
from .smoother import MajoritySmoother
from .window_buffer import SchedulerState, WindowBuffer, WindowScheduler

__all__ = [
    "NO_PREDICTION",
    "DecisionNormalizer",
    "ImuSample",
    "KeyedScoresOutput",
    "LabelOutput",
    "LabelScoresOutput",
    "MajoritySmoother",
    "NestedScoresOutput",
    "PredictionResult",
    "RawOutput",
    "SchedulerState",
    "ScoresOutput",
    "Window",
    "WindowBuffer",
    "WindowScheduler",
    "coerce_raw_output",
]
