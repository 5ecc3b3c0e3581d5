"""
Parse IMU logger lines into :class:`~sensehar.core.models.ImuSample`.

Two line formats are accepted:

  - JSON objects with a time field (``t_s`` seconds, ``timestamp`` seconds or
    ``timestamp_ns`` nanoseconds), ``ax``/``ay``/``az`` and optionally
    ``gx``/``gy``/``gz``
  - comma-separated ``t,ax,ay,az[,gx,gy,gz]`` with ``t`` in seconds

Acceleration may be in g or m/s²; the feature extractor decides which.
"""

from __future__ import annotations

import json
import logging
import math
import time
from typing import Any, Mapping, Optional, Sequence

from ..core.models import ImuSample
from ..tools.debug import debug_enabled

logger = logging.getLogger(__name__)

NS_PER_SECOND = 1_000_000_000

CSV_COLUMNS = ("t", "ax", "ay", "az", "gx", "gy", "gz")


def _timestamp_from(obj: Mapping[str, Any]) -> Optional[float]:
    for key in ("t_s", "timestamp"):
        value = obj.get(key)
        if value is not None:
            return float(value)
    ts_ns = obj.get("timestamp_ns")
    if ts_ns is not None:
        return int(ts_ns) / NS_PER_SECOND
    return None


def sample_from_mapping(obj: Mapping[str, Any]) -> ImuSample | None:
    """Build a sample from a decoded record; ``None`` if a required field is missing or bad."""
    try:
        t = _timestamp_from(obj)
        if t is None:
            logger.warning("Missing timestamp in sensor record: %r", obj)
            return None
        ax, ay, az = (float(obj[name]) for name in ("ax", "ay", "az"))
        gyro = [obj.get(name) for name in ("gx", "gy", "gz")]
        gx, gy, gz = (None if v is None else float(v) for v in gyro)
    except KeyError as exc:
        logger.warning("Missing field %s in sensor record: %r", exc, obj)
        return None
    except (TypeError, ValueError) as exc:
        logger.warning("Bad field value in sensor record %r (%s)", obj, exc)
        return None

    if not all(math.isfinite(v) for v in (t, ax, ay, az)):
        logger.warning("Non-finite value in sensor record: %r", obj)
        return None
    return ImuSample(timestamp=t, ax=ax, ay=ay, az=az, gx=gx, gy=gy, gz=gz)


def _parse_json_line(text: str) -> ImuSample | None:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Bad JSON from sensor stream: %r (%s)", text, exc)
        return None
    if not isinstance(obj, Mapping):
        logger.warning("Expected JSON object from sensor stream, got %r", obj)
        return None
    return sample_from_mapping(obj)


def _parse_csv_line(text: str) -> ImuSample | None:
    parts: Sequence[str] = [p.strip() for p in text.split(",")]
    if len(parts) < 4:
        logger.warning(
            "Expected at least 4 comma-separated values for an IMU line, got %d: %r",
            len(parts),
            text,
        )
        return None
    record = dict(zip(CSV_COLUMNS, parts[:7]))
    try:
        t = float(record.pop("t"))
    except ValueError as exc:
        logger.warning("Bad CSV timestamp in sensor line %r (%s)", text, exc)
        return None
    record["t_s"] = t
    return sample_from_mapping(record)


_parse_time_acc = 0.0
_parse_count = 0


def parse_line(line: str) -> ImuSample | None:
    """
    Parse one logger line.

    Invalid lines return ``None`` so callers can skip them without raising.
    """
    global _parse_time_acc, _parse_count

    text = line.strip()
    if not text:
        return None

    debug_on = debug_enabled()
    start = time.perf_counter() if debug_on else 0.0

    if text[0] == "{":
        sample = _parse_json_line(text)
    else:
        sample = _parse_csv_line(text)

    if debug_on:
        _parse_time_acc += time.perf_counter() - start
        _parse_count += 1
        if _parse_count % 1000 == 0:
            avg_us = (_parse_time_acc / max(1, _parse_count)) * 1e6
            logger.info("imu.parse_line avg %.1f µs over %d samples", avg_us, _parse_count)

    return sample
