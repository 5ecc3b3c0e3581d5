"""Inference backend contract and the adapters shipped with sensehar.

A backend receives either a 1-D feature vector or a ``(steps, channels)``
tensor and returns a raw output (see :mod:`sensehar.core.decision`). Models
themselves live outside this package; :class:`CallableBackend` wraps any
synchronous predict function (scikit-learn, ONNX Runtime, TFLite, ...).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from ..core.decision import RawOutput, ScoresOutput, coerce_raw_output
from ..analysis.tensor import standardize

logger = logging.getLogger(__name__)

PredictFn = Callable[[np.ndarray], Any]


@runtime_checkable
class InferenceBackend(Protocol):
    """Anything that can score one window."""

    name: str

    @property
    def classes(self) -> Sequence[str]:  # pragma: no cover - protocol
        ...

    async def predict(self, inputs: np.ndarray) -> Optional[RawOutput]:  # pragma: no cover - protocol
        ...


class CallableBackend:
    """
    Adapt a synchronous ``predict(inputs)`` function to the async contract.

    The function runs in a worker thread so a slow model does not block the
    event loop; its result is classified once with :func:`coerce_raw_output`.
    Inputs are passed with a leading batch dimension of one.
    """

    def __init__(
        self,
        predict_fn: PredictFn,
        classes: Sequence[str],
        *,
        name: str = "callable",
        add_batch_dim: bool = True,
    ) -> None:
        self._predict_fn = predict_fn
        self._classes: Tuple[str, ...] = tuple(classes)
        self.name = name
        self.add_batch_dim = add_batch_dim

    @property
    def classes(self) -> Tuple[str, ...]:
        return self._classes

    async def predict(self, inputs: np.ndarray) -> Optional[RawOutput]:
        batch = np.asarray(inputs, dtype=np.float32)
        if self.add_batch_dim:
            batch = batch[np.newaxis, ...]
        raw = await asyncio.to_thread(self._predict_fn, batch)
        return coerce_raw_output(raw)


class ScaledBackend:
    """Standardize inputs with fitted scaler parameters before delegating."""

    def __init__(self, inner: InferenceBackend, mean: Sequence[float], scale: Sequence[float]) -> None:
        self.inner = inner
        self.mean = np.asarray(mean, dtype=np.float64)
        self.scale = np.asarray(scale, dtype=np.float64)
        self.name = f"scaled:{inner.name}"

    @property
    def classes(self) -> Sequence[str]:
        return self.inner.classes

    async def predict(self, inputs: np.ndarray) -> Optional[RawOutput]:
        return await self.inner.predict(standardize(inputs, self.mean, self.scale))


class FallbackBackend:
    """
    Substitute used when no real model is available.

    ``mode="uniform"`` answers with equal scores; ``mode="random"`` draws a
    random probability vector from a seeded generator. Either way ``name``
    starts with ``fallback`` so downstream logs and UIs can tell it apart.
    """

    MODES = ("uniform", "random")

    def __init__(self, classes: Sequence[str], *, mode: str = "uniform", seed: int | None = None) -> None:
        if mode not in self.MODES:
            raise ValueError(f"mode must be one of {self.MODES}, got {mode!r}")
        self._classes: Tuple[str, ...] = tuple(classes)
        if not self._classes:
            raise ValueError("classes must not be empty")
        self.mode = mode
        self.name = f"fallback-{mode}"
        self._rng = np.random.default_rng(seed)

    @property
    def classes(self) -> Tuple[str, ...]:
        return self._classes

    async def predict(self, inputs: np.ndarray) -> Optional[RawOutput]:
        n = len(self._classes)
        if self.mode == "uniform":
            scores = np.full(n, 1.0 / n)
        else:
            scores = self._rng.dirichlet(np.ones(n))
        logger.debug("%s prediction over %d classes", self.name, n)
        return ScoresOutput(tuple(float(s) for s in scores))


__all__ = [
    "CallableBackend",
    "FallbackBackend",
    "InferenceBackend",
    "PredictFn",
    "ScaledBackend",
]
