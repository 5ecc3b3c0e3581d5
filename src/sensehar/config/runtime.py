"""Runtime configuration for the recognition pipeline."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Tuple

import yaml

DEFAULT_FEATURE_ORDER: Tuple[str, ...] = (
    "lin_mag_mean",
    "lin_mag_rms",
    "lin_mag_dom_freq",
    "lin_mag_band_energy",
    "lin_mag_spectral_entropy",
    "vert_mean",
    "vert_rms",
    "horiz_rms",
    "vert_horiz_ratio",
    "gyro_mag_rms",
    "vert_p05",
    "vert_p95",
    "vert_peak_ratio",
    "vert_pos_impulses",
    "vert_neg_impulses",
    "vert_impulse_ratio",
    "jerk_mag_rms",
    "jerk_vert_rms",
    "impulse_balance",
    "percentile_balance",
)

DEFAULT_CLASSES: Tuple[str, ...] = ("DOWNSTAIRS", "IDLE", "RUN", "UPSTAIRS", "WALK")

INPUT_MODES = ("features", "tensor", "tensor_enhanced")

# camelCase names used by model metadata and older configs.
_ALIASES = {
    "featureOrder": "feature_order",
    "features": "feature_order",
    "windowLength": "window_seconds",
    "hop": "hop_seconds",
    "minSamples": "min_samples",
    "smoothingK": "smoothing_k",
    "confidenceFloor": "confidence_floor",
    "gravityCutoffHz": "gravity_cutoff_hz",
    "guardInterval": "guard_seconds",
}


@dataclass(slots=True)
class HarConfig:
    """
    Tuning knobs for windowing, feature extraction, and decision smoothing.

    The defaults match a phone streaming at ~50 Hz: 3 s windows re-evaluated
    every 1.5 s, three-vote smoothing and a 0.55 confidence floor.
    """

    feature_order: Tuple[str, ...] = DEFAULT_FEATURE_ORDER
    classes: Tuple[str, ...] = DEFAULT_CLASSES

    # Windowing / scheduling (sample time, seconds)
    window_seconds: float = 3.0
    hop_seconds: float = 1.5
    guard_seconds: float = 1.0
    min_samples: int = 16

    # Smoothing
    smoothing_k: int = 3
    confidence_floor: float = 0.55
    unknown_label: str = "UNKNOWN"

    # Feature extraction
    gravity_cutoff_hz: float = 0.5
    fmin: float = 0.5
    fmax: float = 6.0
    bins: int = 64
    entropy_fmin: float = 0.2
    default_fs: float = 50.0
    sanitize_non_finite: bool = True

    # Backend input
    input_mode: str = "features"
    tensor_steps: int = 100

    def sanitized(self) -> HarConfig:
        """Return a copy with values clamped to usable ranges."""
        fmin = max(0.0, float(self.fmin))
        fmax = max(fmin, float(self.fmax))
        mode = str(self.input_mode).strip().lower()
        if mode not in INPUT_MODES:
            raise ValueError(f"input_mode must be one of {INPUT_MODES}, got {self.input_mode!r}")
        classes = tuple(str(c) for c in self.classes)
        if not classes:
            raise ValueError("classes must not be empty")
        return replace(
            self,
            feature_order=tuple(str(name) for name in self.feature_order),
            classes=classes,
            window_seconds=max(0.1, float(self.window_seconds)),
            hop_seconds=max(0.0, float(self.hop_seconds)),
            guard_seconds=max(0.0, float(self.guard_seconds)),
            min_samples=max(1, int(self.min_samples)),
            smoothing_k=max(1, int(self.smoothing_k)),
            confidence_floor=min(1.0, max(0.0, float(self.confidence_floor))),
            unknown_label=str(self.unknown_label),
            gravity_cutoff_hz=max(0.0, float(self.gravity_cutoff_hz)),
            fmin=fmin,
            fmax=fmax,
            bins=max(2, int(self.bins)),
            entropy_fmin=max(0.0, float(self.entropy_fmin)),
            default_fs=max(1.0, float(self.default_fs)),
            sanitize_non_finite=bool(self.sanitize_non_finite),
            input_mode=mode,
            tensor_steps=max(1, int(self.tensor_steps)),
        )


def _recognized_fields() -> set[str]:
    """Return the dataclass field names accepted by :class:`HarConfig`."""
    return {f.name for f in fields(HarConfig)}


def _normalize_mapping(data: Mapping[str, Any]) -> MutableMapping[str, Any]:
    """Flatten a top-level ``recognizer`` block and map camelCase aliases."""
    merged: MutableMapping[str, Any] = {}
    for key, value in data.items():
        if key == "recognizer" and isinstance(value, Mapping):
            merged.update(value)
        else:
            merged[key] = value
    return {_ALIASES.get(key, key): value for key, value in merged.items()}


def config_from_mapping(data: Mapping[str, Any] | None) -> HarConfig:
    """Build :class:`HarConfig` from ``data`` (ignoring unknown keys)."""
    if not data:
        return HarConfig()
    normalized = _normalize_mapping(data)
    known = _recognized_fields()
    payload = {key: normalized[key] for key in normalized.keys() & known}
    for key in ("feature_order", "classes"):
        if key in payload:
            payload[key] = tuple(payload[key])
    return HarConfig(**payload).sanitized()


def load_config(path: str | Path | None) -> HarConfig:
    """
    Load configuration from a YAML file at ``path``.

    Missing files fall back to the default :class:`HarConfig`.
    """
    if path is None:
        return HarConfig()
    cfg_path = Path(path)
    if not cfg_path.exists():
        return HarConfig()
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Expected mapping in {cfg_path}, got {type(raw).__name__}")
    return config_from_mapping(raw)


def save_config(path: str | Path, cfg: HarConfig) -> None:
    """Write ``cfg`` as YAML under a ``recognizer`` block."""
    cfg_path = Path(path)
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = {
        "recognizer": {
            name: list(value) if isinstance(value, tuple) else value
            for name, value in ((f, getattr(cfg, f)) for f in sorted(_recognized_fields()))
        }
    }
    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False)


__all__ = [
    "DEFAULT_CLASSES",
    "DEFAULT_FEATURE_ORDER",
    "HarConfig",
    "config_from_mapping",
    "load_config",
    "save_config",
]
