"""Lazily initialised backend shared by several pipelines."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional, Sequence

import numpy as np

from ..core.decision import RawOutput
from .backend import InferenceBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], Awaitable[InferenceBackend]]

DEFAULT_INIT_TIMEOUT_S = 5.0


class SharedBackend:
    """
    Single shared handle around an expensive, asynchronously loaded backend.

    The first :meth:`get` starts initialisation; callers arriving while it is
    in flight await the same task and see the same backend or the same
    exception. A failed initialisation is retried by the next caller that
    arrives after it finished. With ``fallback`` set, a failure or timeout
    resolves to the fallback instead and is never retried.
    """

    def __init__(
        self,
        factory: BackendFactory,
        *,
        timeout: Optional[float] = DEFAULT_INIT_TIMEOUT_S,
        fallback: Optional[InferenceBackend] = None,
    ) -> None:
        self._factory = factory
        self.timeout = timeout
        self._fallback = fallback
        self._backend: Optional[InferenceBackend] = None
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self.init_attempts = 0

    @property
    def ready(self) -> bool:
        return self._backend is not None

    @property
    def is_fallback(self) -> bool:
        return self._backend is not None and self._backend is self._fallback

    @property
    def name(self) -> str:
        if self._backend is None:
            return "shared:uninitialised"
        return f"shared:{self._backend.name}"

    @property
    def classes(self) -> Sequence[str]:
        if self._backend is None:
            return ()
        return self._backend.classes

    async def get(self) -> InferenceBackend:
        if self._backend is not None:
            return self._backend
        if self._task is None or self._task.done():
            self._task = asyncio.ensure_future(self._initialize(self._generation))
        # shield: one cancelled waiter must not cancel everyone else's init.
        return await asyncio.shield(self._task)

    async def predict(self, inputs: np.ndarray) -> Optional[RawOutput]:
        backend = await self.get()
        return await backend.predict(inputs)

    def reset(self) -> None:
        """
        Forget the initialised backend so the next :meth:`get` loads it again.

        An initialisation still in flight completes for its own waiters but
        is no longer stored.
        """
        self._generation += 1
        self._backend = None
        self._task = None

    async def _initialize(self, generation: int) -> InferenceBackend:
        self.init_attempts += 1
        start = time.perf_counter()
        try:
            if self.timeout is None:
                backend = await self._factory()
            else:
                backend = await asyncio.wait_for(self._factory(), self.timeout)
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            if self._fallback is None:
                logger.error("Backend initialisation failed after %.0f ms: %s", elapsed_ms, exc)
                raise
            logger.warning(
                "Backend initialisation failed after %.0f ms (%s); using %s",
                elapsed_ms,
                str(exc) or type(exc).__name__,
                self._fallback.name,
            )
            backend = self._fallback
        else:
            logger.info(
                "Backend %s ready in %.0f ms",
                backend.name,
                (time.perf_counter() - start) * 1000.0,
            )
        if generation == self._generation:
            self._backend = backend
        else:
            logger.debug("Discarding %s initialised before reset", backend.name)
        return backend


__all__ = ["BackendFactory", "DEFAULT_INIT_TIMEOUT_S", "SharedBackend"]
