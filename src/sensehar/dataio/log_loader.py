"""Utilities for loading recorded IMU logs for offline replay."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

import numpy as np

from ..core.models import ImuSample
from ..sensors.imu import parse_line

logger = logging.getLogger(__name__)


def _looks_numeric_csv_line(line: str) -> bool:
    """Heuristically decide if a CSV line is numeric-only (no header)."""
    stripped = line.strip()
    if not stripped:
        return False
    tokens = [t for t in stripped.split(",") if t]
    if not tokens:
        return False
    try:
        for t in tokens:
            float(t)
        return True
    except ValueError:
        return False


def load_csv(path: Path) -> np.ndarray:
    """
    Load a CSV file containing numeric data as a 2-D array.

    The file may optionally include a single header row, which will be
    skipped automatically.
    """
    with path.open("r", encoding="utf-8") as f:
        first_line = f.readline()
        rest = f.read()

    # Decide if the first line is header or data
    if _looks_numeric_csv_line(first_line):
        buffer = io.StringIO(first_line + rest)
    else:
        buffer = io.StringIO(rest)

    return np.loadtxt(buffer, delimiter=",", ndmin=2)


def samples_from_array(data: np.ndarray) -> List[ImuSample]:
    """
    Convert rows of ``t, ax, ay, az[, gx, gy, gz]`` into samples.

    Rows are sorted by time so replays respect the buffer ordering.
    """
    arr = np.asarray(data, dtype=float)
    if arr.size == 0:
        return []
    if arr.ndim != 2 or arr.shape[1] < 4:
        raise ValueError(f"expected rows of at least 4 columns, got shape {arr.shape}")
    arr = arr[np.argsort(arr[:, 0], kind="stable")]
    has_gyro = arr.shape[1] >= 7
    samples = []
    for row in arr:
        gyro = (float(row[4]), float(row[5]), float(row[6])) if has_gyro else (None, None, None)
        samples.append(ImuSample(float(row[0]), float(row[1]), float(row[2]), float(row[3]), *gyro))
    return samples


def iter_jsonl_samples(lines: Iterable[str]) -> Iterator[ImuSample]:
    """Yield samples from JSON (or CSV) lines, skipping anything unparsable."""
    for line in lines:
        sample = parse_line(line)
        if sample is not None:
            yield sample


def load_samples(path: Path) -> List[ImuSample]:
    """Load a ``.csv`` or ``.jsonl``/``.json`` log into time-ordered samples."""
    path = Path(path)
    if path.suffix.lower() in {".jsonl", ".json", ".ndjson"}:
        with path.open("r", encoding="utf-8") as fh:
            samples = list(iter_jsonl_samples(fh))
        samples.sort(key=lambda s: s.timestamp)
    else:
        samples = samples_from_array(load_csv(path))
    logger.info("Loaded %d samples from %s", len(samples), path)
    return samples


def merge_logs(paths: Sequence[Path]) -> List[ImuSample]:
    """Load several logs and merge them into one time-ordered sequence."""
    merged: List[ImuSample] = []
    for path in paths:
        merged.extend(load_samples(path))
    merged.sort(key=lambda s: s.timestamp)
    return merged
