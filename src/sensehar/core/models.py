"""Shared dataclasses for samples, windows, and predictions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np

# Confidence reported before the first completed inference cycle.
NO_PREDICTION = -1.0


@dataclass(frozen=True, slots=True)
class ImuSample:
    """One accelerometer reading (plus optional gyroscope) at ``timestamp`` seconds."""

    timestamp: float
    ax: float
    ay: float
    az: float
    gx: Optional[float] = None
    gy: Optional[float] = None
    gz: Optional[float] = None

    @property
    def has_gyro(self) -> bool:
        return self.gx is not None and self.gy is not None and self.gz is not None


@dataclass(frozen=True, slots=True)
class Window:
    """
    Read-only view of the samples in ``[latest - window_seconds, latest]``.

    Arrays are built on demand so holding a window costs no more than the
    tuple of sample references.
    """

    samples: Tuple[ImuSample, ...] = ()

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def start(self) -> Optional[float]:
        return self.samples[0].timestamp if self.samples else None

    @property
    def end(self) -> Optional[float]:
        return self.samples[-1].timestamp if self.samples else None

    def timestamps(self) -> np.ndarray:
        return np.fromiter(
            (s.timestamp for s in self.samples), dtype=np.float64, count=len(self.samples)
        )

    def axis(self, name: str) -> np.ndarray:
        """
        Return one channel (``ax`` .. ``gz``) as a float array.

        Missing gyroscope values come back as 0.0.
        """
        values = (getattr(s, name) for s in self.samples)
        return np.fromiter(
            (0.0 if v is None else float(v) for v in values),
            dtype=np.float64,
            count=len(self.samples),
        )

    @property
    def has_gyro(self) -> bool:
        return any(s.has_gyro for s in self.samples)


ClassDistribution = Dict[str, float]


@dataclass(frozen=True, slots=True)
class PredictionResult:
    label: str
    confidence: float
    distribution: ClassDistribution = field(default_factory=dict)
    source: str = "uniform"
