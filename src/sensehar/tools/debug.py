"""Opt-in instrumentation switched by the ``SENSEHAR_DEBUG`` environment variable."""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

DEBUG_ENV_VAR = "SENSEHAR_DEBUG"
_TRUTHY = {"1", "true", "yes", "on"}


def debug_enabled() -> bool:
    """Return True when ``SENSEHAR_DEBUG`` is set to a truthy value right now."""
    return os.getenv(DEBUG_ENV_VAR, "").strip().lower() in _TRUTHY


@contextmanager
def time_block(label: str, *, emitter: Callable[[str], None] | None = None) -> Iterator[None]:
    """
    Report how long the body took, in milliseconds, when debugging is on.

    The message goes to ``emitter`` (default: this module's logger at DEBUG
    level). With debugging off the body runs untimed.
    """
    if not debug_enabled():
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        (emitter or logger.debug)(f"{label} took {elapsed_ms:.3f} ms")


__all__ = ["DEBUG_ENV_VAR", "debug_enabled", "time_block"]
