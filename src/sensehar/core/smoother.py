"""Majority-vote smoothing of per-cycle labels."""

from __future__ import annotations

from collections import Counter, deque
from typing import Deque, List, Tuple

DEFAULT_UNKNOWN_LABEL = "UNKNOWN"


class MajoritySmoother:
    """
    Keep the last ``k`` labels and report the most frequent one.

    Predictions below the confidence floor are recorded as ``unknown_label``
    rather than dropped, so a run of uncertain cycles can itself win the vote.
    """

    def __init__(self, k: int = 3, unknown_label: str = DEFAULT_UNKNOWN_LABEL) -> None:
        if k < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        self.k = int(k)
        self.unknown_label = unknown_label
        self._history: Deque[str] = deque(maxlen=self.k)

    @property
    def history(self) -> List[str]:
        return list(self._history)

    def accept(self, label: str, confidence: float, confidence_floor: float) -> Tuple[str, float]:
        """Record ``label`` and return ``(majority_label, confidence)``."""
        if confidence < confidence_floor:
            label = self.unknown_label
        self._history.append(label)
        return self.majority(), confidence

    def majority(self) -> str:
        """Most frequent label; ties go to whichever tied label entered history first."""
        if not self._history:
            return self.unknown_label
        counts = Counter(self._history)
        best = max(counts.values())
        for label in self._history:
            if counts[label] == best:
                return label
        return self.unknown_label  # pragma: no cover - unreachable

    def clear(self) -> None:
        self._history.clear()


__all__ = ["DEFAULT_UNKNOWN_LABEL", "MajoritySmoother"]
