"""Model metadata sidecar files (feature order, classes, scaler parameters)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from .runtime import HarConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ModelMetadata:
    """
    Description of what a trained model expects and produces.

    Two JSON layouts are understood::

        {"features": [...], "classes": [...]}

        {"model_info": {"classes": [...], "input_shape": [1, 100, 4]},
         "preprocessing": {"window_size": 100, "features": [...],
                           "normalization": {"scaler_parameters":
                                             {"mean": [...], "scale": [...]}}}}
    """

    features: Tuple[str, ...] = ()
    classes: Tuple[str, ...] = ()
    window_size: Optional[int] = None
    scaler_mean: Tuple[float, ...] = ()
    scaler_scale: Tuple[float, ...] = ()

    @property
    def has_scaler(self) -> bool:
        return bool(self.scaler_mean) and len(self.scaler_mean) == len(self.scaler_scale)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "ModelMetadata":
        payload: Mapping[str, Any] = data or {}
        model_info = payload.get("model_info")
        model_info = model_info if isinstance(model_info, Mapping) else {}
        preprocessing = payload.get("preprocessing")
        preprocessing = preprocessing if isinstance(preprocessing, Mapping) else {}

        features = payload.get("features") or preprocessing.get("features") or ()
        classes = payload.get("classes") or model_info.get("classes") or ()

        window_size = preprocessing.get("window_size")
        try:
            window_size = int(window_size) if window_size is not None else None
        except (TypeError, ValueError):
            logger.warning("Ignoring non-integer window_size %r in model metadata", window_size)
            window_size = None

        scaler = {}
        normalization = preprocessing.get("normalization")
        if isinstance(normalization, Mapping):
            params = normalization.get("scaler_parameters")
            if isinstance(params, Mapping):
                scaler = params

        return cls(
            features=tuple(str(f) for f in features),
            classes=tuple(str(c) for c in classes),
            window_size=window_size,
            scaler_mean=tuple(float(v) for v in scaler.get("mean", ())),
            scaler_scale=tuple(float(v) for v in scaler.get("scale", ())),
        )

    def apply_to(self, cfg: HarConfig) -> HarConfig:
        """Return ``cfg`` with the model's feature order, classes and window size."""
        updates: dict[str, Any] = {}
        if self.features:
            updates["feature_order"] = self.features
        if self.classes:
            updates["classes"] = self.classes
        if self.window_size:
            updates["tensor_steps"] = self.window_size
        return replace(cfg, **updates).sanitized()


def load_metadata(path: str | Path) -> ModelMetadata:
    """Read a metadata JSON file; raises ``ValueError`` when it is not an object."""
    meta_path = Path(path)
    with meta_path.open("r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected JSON object in {meta_path}, got {type(raw).__name__}")
    meta = ModelMetadata.from_mapping(raw)
    logger.info(
        "Loaded model metadata from %s: %d features, %d classes",
        meta_path,
        len(meta.features),
        len(meta.classes),
    )
    return meta


__all__ = ["ModelMetadata", "load_metadata"]
