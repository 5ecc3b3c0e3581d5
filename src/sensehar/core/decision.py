"""Reconcile raw backend outputs into one class-probability distribution.

Backends answer in different shapes: a bare label, a score vector, a
batch-of-one score matrix, a label plus scores, or scores keyed by class
name. Each shape is a distinct dataclass; :func:`coerce_raw_output` classifies
untyped results once, at the backend boundary, and :class:`DecisionNormalizer`
is the only consumer.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike

from .models import ClassDistribution, PredictionResult

logger = logging.getLogger(__name__)

SUM_TOLERANCE = 0.01


@dataclass(frozen=True, slots=True)
class LabelOutput:
    label: str


@dataclass(frozen=True, slots=True)
class ScoresOutput:
    scores: Tuple[float, ...]


@dataclass(frozen=True, slots=True)
class NestedScoresOutput:
    batch: Tuple[Tuple[float, ...], ...]


@dataclass(frozen=True, slots=True)
class LabelScoresOutput:
    label: str
    scores: Tuple[float, ...]


@dataclass(frozen=True, slots=True)
class KeyedScoresOutput:
    """Scores keyed by class name, in whatever order the backend produced them."""

    scores: Tuple[Tuple[str, float], ...]
    label: Optional[str] = None


RawOutput = Union[
    LabelOutput, ScoresOutput, NestedScoresOutput, LabelScoresOutput, KeyedScoresOutput
]

_TYPED_OUTPUTS = (LabelOutput, ScoresOutput, NestedScoresOutput, LabelScoresOutput, KeyedScoresOutput)


def _floats(values: ArrayLike) -> Tuple[float, ...]:
    return tuple(float(v) for v in np.asarray(values, dtype=float).reshape(-1))


def _scores_from(value: Any) -> Optional[RawOutput]:
    arr = np.asarray(value, dtype=float)
    if arr.ndim == 1:
        return ScoresOutput(_floats(arr))
    if arr.ndim == 2:
        return NestedScoresOutput(tuple(_floats(row) for row in arr))
    return None


def _label_from(value: Any) -> Optional[str]:
    """Accept ``"WALK"``, ``["WALK"]`` or ``np.array(["WALK"])`` as a label."""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if isinstance(value, (list, tuple, np.ndarray)) and len(value) == 1:
        first = value[0]
        if isinstance(first, (str, bytes, np.str_)):
            return _label_from(str(first))
    return None


def _keyed_from(scores: Mapping[Any, Any], label: Optional[str]) -> Optional[KeyedScoresOutput]:
    try:
        pairs = tuple((str(name), float(value)) for name, value in scores.items())
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric scores in backend output: %r", scores)
        return None
    return KeyedScoresOutput(pairs, label)


def _with_label(label: str, scores: Any) -> RawOutput:
    """Combine ``label`` with whatever scores shape accompanies it."""
    if isinstance(scores, Mapping):
        keyed = _keyed_from(scores, label)
        return keyed if keyed is not None else LabelOutput(label)
    try:
        parsed = _scores_from(scores)
    except (TypeError, ValueError):
        parsed = None
    if isinstance(parsed, ScoresOutput):
        return LabelScoresOutput(label, parsed.scores)
    if isinstance(parsed, NestedScoresOutput) and parsed.batch:
        return LabelScoresOutput(label, parsed.batch[0])
    return LabelOutput(label)


def coerce_raw_output(raw: Any) -> Optional[RawOutput]:
    """
    Classify an untyped backend result into one of the :data:`RawOutput` cases.

    Understood inputs: a typed output (returned as-is), a label string, a
    numeric sequence or batch-of-one, a ``[label, scores]`` pair (list or
    tuple, as ONNX Runtime returns for classifier pipelines), or a mapping
    with ``label``/``class`` and ``probabilities``/``scores``/``probs`` keys.
    Scores keyed by class name stay keyed so the normalizer can align them
    with its own class order. Returns ``None`` when nothing usable is found.
    """
    if raw is None:
        return None
    if isinstance(raw, _TYPED_OUTPUTS):
        return raw

    label = _label_from(raw)
    if label is not None:
        return LabelOutput(label)

    if isinstance(raw, Mapping):
        label = _label_from(raw.get("label", raw.get("class")))
        scores = raw.get("probabilities", raw.get("scores", raw.get("probs")))
        if scores is None:
            return LabelOutput(label) if label is not None else None
        if label is not None:
            return _with_label(label, scores)
        if isinstance(scores, Mapping):
            return _keyed_from(scores, None)
        try:
            return _scores_from(scores)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric scores in backend output: %r", scores)
            return None

    if isinstance(raw, (list, tuple)) and len(raw) == 2:
        label = _label_from(raw[0])
        if label is not None:
            return _with_label(label, raw[1])

    try:
        return _scores_from(raw)
    except (TypeError, ValueError):
        logger.warning("Unrecognised backend output of type %s", type(raw).__name__)
        return None


class DecisionNormalizer:
    """
    Map any :data:`RawOutput` onto a normalized distribution over ``classes``.

    Resolution order: scores of the right length, then a one-hot of a known
    label, then uniform. The chosen values are then accepted as-is when they
    already sum to ~1, softmaxed when they look like logits, and replaced by
    uniform when they sum to exactly zero.
    """

    def __init__(self, classes: Sequence[str]) -> None:
        self.classes: Tuple[str, ...] = tuple(str(c) for c in classes)
        if not self.classes:
            raise ValueError("classes must not be empty")
        self._index = {name: i for i, name in enumerate(self.classes)}

    def uniform(self) -> np.ndarray:
        n = len(self.classes)
        return np.full(n, 1.0 / n)

    def softmax(self, values: ArrayLike) -> np.ndarray:
        """Numerically stable softmax; falls back to uniform if the exp-sum degenerates."""
        x = np.asarray(values, dtype=float).reshape(-1)
        if x.size == 0:
            return x
        exps = np.exp(x - np.max(x))
        total = float(np.sum(exps))
        if total == 0.0 or not np.isfinite(total):
            return np.full(x.size, 1.0 / x.size)
        return exps / total

    def _keyed_scores(self, raw: KeyedScoresOutput) -> Optional[np.ndarray]:
        """Align scores keyed by class name with ``classes``; unknown or missing names reject them."""
        keyed = dict(raw.scores)
        if len(keyed) != len(raw.scores) or set(keyed) != set(self._index):
            logger.debug(
                "Ignoring keyed scores for %s; expected classes %s",
                sorted(keyed),
                list(self.classes),
            )
            return None
        return np.array([keyed[name] for name in self.classes], dtype=float)

    def _matching_scores(self, raw: RawOutput) -> Optional[np.ndarray]:
        n = len(self.classes)
        if isinstance(raw, KeyedScoresOutput):
            return self._keyed_scores(raw)
        if isinstance(raw, (ScoresOutput, LabelScoresOutput)):
            candidate = raw.scores
        elif isinstance(raw, NestedScoresOutput):
            candidate = raw.batch[0] if len(raw.batch) == 1 else ()
        else:
            return None
        if len(candidate) != n:
            logger.debug("Ignoring %d scores for %d classes", len(candidate), n)
            return None
        return np.asarray(candidate, dtype=float)

    def _one_hot(self, label: str) -> Optional[np.ndarray]:
        idx = self._index.get(label)
        if idx is None:
            logger.debug("Backend label %r is not a known class", label)
            return None
        probs = np.zeros(len(self.classes))
        probs[idx] = 1.0
        return probs

    def resolve(self, raw: Optional[RawOutput]) -> Tuple[np.ndarray, str]:
        """Pick the raw distribution and name the branch that produced it."""
        if raw is not None:
            scores = self._matching_scores(raw)
            if scores is not None:
                return scores, "scores"
            label = getattr(raw, "label", None)
            if label is not None:
                one_hot = self._one_hot(label)
                if one_hot is not None:
                    return one_hot, "one_hot"
        return self.uniform(), "uniform"

    def finalize(self, values: np.ndarray) -> np.ndarray:
        """Uniform for an all-zero sum, softmax for logits, otherwise ``values`` unchanged."""
        total = float(np.sum(values))
        if total == 0.0:
            return self.uniform()
        if not np.isfinite(total) or abs(total - 1.0) > SUM_TOLERANCE:
            return self.softmax(values)
        # Summing to ~1 is not enough: a negative entry means logits.
        if np.any(values < 0.0):
            return self.softmax(values)
        return values

    def normalize(self, raw: Optional[RawOutput]) -> PredictionResult:
        values, source = self.resolve(raw)
        probs = self.finalize(values)
        best = int(np.argmax(probs))  # first index wins ties
        distribution: ClassDistribution = OrderedDict(
            (name, float(p)) for name, p in zip(self.classes, probs)
        )
        return PredictionResult(
            label=self.classes[best],
            confidence=float(probs[best]),
            distribution=distribution,
            source=source,
        )


__all__ = [
    "DecisionNormalizer",
    "KeyedScoresOutput",
    "LabelOutput",
    "LabelScoresOutput",
    "NestedScoresOutput",
    "RawOutput",
    "ScoresOutput",
    "coerce_raw_output",
]
