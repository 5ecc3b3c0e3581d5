"""Online recognition engine: samples in, smoothed activity labels out."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterable, Callable, Iterable, Optional, Union

import numpy as np

from ..analysis.features import FeatureExtractor
from ..analysis.tensor import TENSOR_MODES
from ..config.runtime import HarConfig
from ..inference.backend import InferenceBackend
from ..tools.debug import time_block
from .decision import DecisionNormalizer, RawOutput
from .models import NO_PREDICTION, ImuSample, PredictionResult, Window
from .smoother import MajoritySmoother
from .window_buffer import WindowScheduler

logger = logging.getLogger(__name__)

PredictionCallback = Callable[[str, float], None]


class ActivityPipeline:
    """
    Drive window scheduling, feature extraction, inference, and smoothing.

    :meth:`add_sample` holds an :class:`asyncio.Lock` for the whole
    append -> snapshot -> extract -> infer cycle, so the buffer is never
    mutated while an inference for it is in flight. Waiters are served in
    arrival order, which keeps samples in timestamp order.
    """

    def __init__(
        self,
        backend: InferenceBackend,
        config: Optional[HarConfig] = None,
        *,
        on_prediction: Optional[PredictionCallback] = None,
        normalizer: Optional[DecisionNormalizer] = None,
    ) -> None:
        self.config = (config or HarConfig()).sanitized()
        cfg = self.config
        self.backend = backend
        self.on_prediction = on_prediction
        self.scheduler = WindowScheduler(
            window_seconds=cfg.window_seconds,
            hop_seconds=cfg.hop_seconds,
            min_samples=cfg.min_samples,
            guard_seconds=cfg.guard_seconds,
        )
        self.extractor = FeatureExtractor(cfg)
        self.normalizer = normalizer or DecisionNormalizer(cfg.classes)
        self.smoother = MajoritySmoother(cfg.smoothing_k, unknown_label=cfg.unknown_label)
        self._lock = asyncio.Lock()
        self._label = ""
        self._confidence = NO_PREDICTION
        self.last_raw: Optional[PredictionResult] = None
        self.last_window: Optional[Window] = None
        self.last_inputs: Optional[np.ndarray] = None
        self.cycles = 0

    # ------------------------------------------------------------------ state
    @property
    def label(self) -> str:
        return self._label

    @property
    def confidence(self) -> float:
        """Latest smoothed confidence, or ``NO_PREDICTION`` (-1.0) before the first cycle."""
        return self._confidence

    def reset(self) -> None:
        """Start a new session: drop buffered samples and smoothing history."""
        self.scheduler.reset()
        self.smoother.clear()
        self._label = ""
        self._confidence = NO_PREDICTION
        self.last_raw = None
        self.last_window = None
        self.last_inputs = None

    # ----------------------------------------------------------------- ingest
    async def add_sample(self, sample: ImuSample) -> Optional[PredictionResult]:
        """
        Feed one sample; returns the smoothed result when an inference ran.

        Out-of-order samples are logged and dropped.
        """
        async with self._lock:
            try:
                window = self.scheduler.offer(sample)
            except ValueError as exc:
                logger.warning("Dropping sample: %s", exc)
                return None
            if window is None:
                return None
            return await self._run_cycle(window)

    async def run(
        self,
        samples: Union[Iterable[ImuSample], AsyncIterable[ImuSample]],
    ) -> list[PredictionResult]:
        """Feed every sample from ``samples`` and collect the results."""
        results: list[PredictionResult] = []
        if hasattr(samples, "__aiter__"):
            async for sample in samples:  # type: ignore[union-attr]
                result = await self.add_sample(sample)
                if result is not None:
                    results.append(result)
        else:
            for sample in samples:  # type: ignore[union-attr]
                result = await self.add_sample(sample)
                if result is not None:
                    results.append(result)
        return results

    # ---------------------------------------------------------------- helpers
    def build_inputs(self, window: Window) -> np.ndarray:
        tensor_mode = TENSOR_MODES.get(self.config.input_mode)
        if tensor_mode is not None:
            build, _ = tensor_mode
            return build(window, self.config.tensor_steps).astype(np.float32)
        return self.extractor.extract_array(window)

    async def _infer(self, inputs: np.ndarray) -> Optional[RawOutput]:
        try:
            return await self.backend.predict(inputs)
        except Exception:
            logger.exception("Backend %s failed; using uniform distribution", self.backend.name)
            return None

    async def _run_cycle(self, window: Window) -> PredictionResult:
        cfg = self.config
        with time_block(f"inference cycle ({len(window)} samples)"):
            inputs = self.build_inputs(window)
            raw = await self._infer(inputs)
            prediction = self.normalizer.normalize(raw)

        label, confidence = self.smoother.accept(
            prediction.label, prediction.confidence, cfg.confidence_floor
        )
        self.cycles += 1
        self.last_raw = prediction
        self.last_window = window
        self.last_inputs = inputs
        self._label = label
        self._confidence = confidence
        logger.debug(
            "Cycle %d at t=%.3fs: raw=%s (%.2f, %s) smoothed=%s",
            self.cycles,
            window.end,
            prediction.label,
            prediction.confidence,
            prediction.source,
            label,
        )

        if self.on_prediction is not None:
            try:
                self.on_prediction(label, confidence)
            except Exception:
                logger.exception("Error in prediction callback for %s", label)

        return PredictionResult(
            label=label,
            confidence=confidence,
            distribution=prediction.distribution,
            source=prediction.source,
        )


__all__ = ["ActivityPipeline", "PredictionCallback"]
