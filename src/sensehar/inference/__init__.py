"""Inference backend contract, adapters, and the shared lazy loader."""

from .backend import CallableBackend, FallbackBackend, InferenceBackend, ScaledBackend
from .shared import SharedBackend

__all__ = [
    "CallableBackend",
    "FallbackBackend",
    "InferenceBackend",
    "ScaledBackend",
    "SharedBackend",
]
