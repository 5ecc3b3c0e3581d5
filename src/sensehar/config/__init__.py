"""Configuration objects and helpers for sensehar.

:mod:`runtime` holds the :class:`HarConfig` dataclass loaded from YAML, and
:mod:`metadata` reads the JSON sidecar that ships with a trained model
(feature order, class labels, scaler parameters). The resulting typed objects
are passed to the pipeline, extractor, and backends so every stage agrees on
the same windowing and class list.
"""

from .metadata import ModelMetadata, load_metadata
from .runtime import (
    DEFAULT_CLASSES,
    DEFAULT_FEATURE_ORDER,
    HarConfig,
    config_from_mapping,
    load_config,
    save_config,
)

__all__ = [
    "DEFAULT_CLASSES",
    "DEFAULT_FEATURE_ORDER",
    "HarConfig",
    "ModelMetadata",
    "config_from_mapping",
    "load_config",
    "load_metadata",
    "save_config",
]
