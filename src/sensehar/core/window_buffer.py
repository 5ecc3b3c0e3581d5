"""Sliding sample buffer and hop-based inference scheduling."""

from __future__ import annotations

import enum
import logging
from collections import deque
from typing import Deque, Optional

from .models import ImuSample, Window

logger = logging.getLogger(__name__)


class WindowBuffer:
    """
    Time-bounded buffer of :class:`ImuSample` ordered by timestamp.

    After each append, samples older than ``latest - (window + guard)`` are
    dropped from the left. The guard keeps a little history beyond the window
    so a window taken slightly later still finds its oldest samples.
    """

    def __init__(self, window_seconds: float, guard_seconds: float = 1.0) -> None:
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be > 0, got {window_seconds}")
        if guard_seconds < 0:
            raise ValueError(f"guard_seconds must be >= 0, got {guard_seconds}")
        self.window_seconds = float(window_seconds)
        self.guard_seconds = float(guard_seconds)
        self._samples: Deque[ImuSample] = deque()

    # ------------------------------------------------------------------ ingest
    def append(self, sample: ImuSample) -> None:
        """Append ``sample`` and evict everything older than the retention span."""
        latest = self.latest_timestamp
        if latest is not None and sample.timestamp < latest:
            raise ValueError(
                f"sample at t={sample.timestamp:.6f}s is older than buffered t={latest:.6f}s"
            )
        self._samples.append(sample)
        self._truncate()

    def clear(self) -> None:
        self._samples.clear()

    # ------------------------------------------------------------------- query
    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self):
        return iter(self._samples)

    @property
    def latest_timestamp(self) -> Optional[float]:
        if not self._samples:
            return None
        return self._samples[-1].timestamp

    @property
    def oldest_timestamp(self) -> Optional[float]:
        if not self._samples:
            return None
        return self._samples[0].timestamp

    def window(self) -> Window:
        """Return the samples in ``[latest - window_seconds, latest]``."""
        latest = self.latest_timestamp
        if latest is None:
            return Window()
        start = latest - self.window_seconds
        recent = []
        for sample in reversed(self._samples):
            if sample.timestamp < start:
                break
            recent.append(sample)
        recent.reverse()
        return Window(tuple(recent))

    # ----------------------------------------------------------------- helpers
    def _truncate(self) -> None:
        latest = self.latest_timestamp
        if latest is None:
            return
        threshold = latest - (self.window_seconds + self.guard_seconds)
        buf = self._samples
        while buf and buf[0].timestamp < threshold:
            buf.popleft()


class SchedulerState(enum.Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    READY = "ready"


class WindowScheduler:
    """
    Decide when enough new data has arrived to run another inference.

    Hops are measured in sample time, not wall-clock time, so replays and
    tests behave exactly like live streams regardless of processing jitter.
    A trigger is consumed by :meth:`snapshot`; READY never persists past it.
    """

    def __init__(
        self,
        window_seconds: float,
        hop_seconds: float,
        min_samples: int,
        guard_seconds: float = 1.0,
    ) -> None:
        if hop_seconds < 0:
            raise ValueError(f"hop_seconds must be >= 0, got {hop_seconds}")
        if min_samples < 1:
            raise ValueError(f"min_samples must be >= 1, got {min_samples}")
        self.buffer = WindowBuffer(window_seconds, guard_seconds)
        self.hop_seconds = float(hop_seconds)
        self.min_samples = int(min_samples)
        self._last_trigger: Optional[float] = None
        self._pending = False

    @property
    def last_trigger_timestamp(self) -> Optional[float]:
        return self._last_trigger

    @property
    def state(self) -> SchedulerState:
        if len(self.buffer) == 0:
            return SchedulerState.EMPTY
        if self._pending and len(self.buffer.window()) >= self.min_samples:
            return SchedulerState.READY
        return SchedulerState.ACCUMULATING

    def append(self, sample: ImuSample) -> None:
        self.buffer.append(sample)

    def maybe_trigger(self, sample: ImuSample) -> bool:
        """Record a trigger at ``sample.timestamp`` if a hop has elapsed since the last one."""
        last = self._last_trigger
        if last is not None and sample.timestamp - last < self.hop_seconds:
            return False
        self._last_trigger = sample.timestamp
        self._pending = True
        return True

    def snapshot(self) -> Optional[Window]:
        """Consume the pending trigger; return the window or ``None`` if it is too short."""
        self._pending = False
        window = self.buffer.window()
        if len(window) < self.min_samples:
            logger.debug(
                "Window has %d samples (< %d), skipping inference",
                len(window),
                self.min_samples,
            )
            return None
        return window

    def offer(self, sample: ImuSample) -> Optional[Window]:
        """Append ``sample`` and return a window when an inference is due."""
        self.append(sample)
        if not self.maybe_trigger(sample):
            return None
        return self.snapshot()

    def reset(self) -> None:
        self.buffer.clear()
        self._last_trigger = None
        self._pending = False


__all__ = ["SchedulerState", "WindowBuffer", "WindowScheduler"]
