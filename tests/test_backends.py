import asyncio

import numpy as np
import pytest

from sensehar.core.decision import LabelOutput, ScoresOutput
from sensehar.inference import (
    CallableBackend,
    FallbackBackend,
    InferenceBackend,
    ScaledBackend,
    SharedBackend,
)

CLASSES = ("IDLE", "WALK")


class _Echo:
    name = "echo"
    classes = CLASSES

    def __init__(self):
        self.seen = None

    async def predict(self, inputs):
        self.seen = np.asarray(inputs)
        return ScoresOutput((0.5, 0.5))


@pytest.mark.asyncio
async def test_callable_backend_adds_batch_dim_and_coerces() -> None:
    seen = {}

    def predict(batch):
        seen["shape"] = batch.shape
        seen["dtype"] = batch.dtype
        return np.array([[0.3, 0.7]])

    backend = CallableBackend(predict, CLASSES, name="sk")
    raw = await backend.predict(np.zeros(20))

    assert seen == {"shape": (1, 20), "dtype": np.float32}
    assert raw.batch == ((pytest.approx(0.3), pytest.approx(0.7)),)
    assert isinstance(backend, InferenceBackend)


@pytest.mark.asyncio
async def test_callable_backend_label_output() -> None:
    backend = CallableBackend(lambda batch: ["WALK"], CLASSES, add_batch_dim=False)
    assert await backend.predict(np.zeros(4)) == LabelOutput("WALK")


@pytest.mark.asyncio
async def test_scaled_backend_standardizes_inputs() -> None:
    inner = _Echo()
    backend = ScaledBackend(inner, mean=[1.0, 2.0], scale=[2.0, 0.0])
    await backend.predict(np.array([[3.0, 5.0]]))
    np.testing.assert_allclose(inner.seen, [[1.0, 3.0]])
    assert backend.name == "scaled:echo"
    assert backend.classes == CLASSES


@pytest.mark.asyncio
async def test_fallback_backend_modes() -> None:
    uniform = FallbackBackend(CLASSES)
    assert uniform.name == "fallback-uniform"
    assert (await uniform.predict(np.zeros(3))).scores == (0.5, 0.5)

    rnd = FallbackBackend(CLASSES, mode="random", seed=42)
    scores = (await rnd.predict(np.zeros(3))).scores
    assert sum(scores) == pytest.approx(1.0)
    assert all(s >= 0.0 for s in scores)


def test_fallback_backend_rejects_bad_arguments() -> None:
    with pytest.raises(ValueError):
        FallbackBackend(CLASSES, mode="magic")
    with pytest.raises(ValueError):
        FallbackBackend(())


@pytest.mark.asyncio
async def test_shared_backend_initialises_once_for_concurrent_callers() -> None:
    calls = 0

    async def factory():
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        return _Echo()

    shared = SharedBackend(factory)
    assert not shared.ready
    assert shared.name == "shared:uninitialised"

    backends = await asyncio.gather(*(shared.get() for _ in range(5)))

    assert calls == 1
    assert all(b is backends[0] for b in backends)
    assert shared.ready
    assert not shared.is_fallback
    assert shared.name == "shared:echo"
    assert shared.classes == CLASSES


@pytest.mark.asyncio
async def test_shared_backend_failure_is_shared_then_retried() -> None:
    attempts = 0

    async def factory():
        nonlocal attempts
        attempts += 1
        await asyncio.sleep(0.01)
        if attempts == 1:
            raise RuntimeError("model file missing")
        return _Echo()

    shared = SharedBackend(factory)
    results = await asyncio.gather(shared.get(), shared.get(), return_exceptions=True)
    assert all(isinstance(r, RuntimeError) for r in results)
    assert shared.init_attempts == 1

    backend = await shared.get()
    assert backend.name == "echo"
    assert shared.init_attempts == 2


@pytest.mark.asyncio
async def test_shared_backend_timeout_uses_fallback() -> None:
    async def slow_factory():
        await asyncio.sleep(10)
        return _Echo()

    fallback = FallbackBackend(CLASSES)
    shared = SharedBackend(slow_factory, timeout=0.05, fallback=fallback)

    assert await shared.get() is fallback
    assert shared.is_fallback
    # Sticky: no second attempt.
    assert await shared.get() is fallback
    assert shared.init_attempts == 1

    raw = await shared.predict(np.zeros(2))
    assert raw.scores == (0.5, 0.5)


@pytest.mark.asyncio
async def test_shared_backend_reset_reloads() -> None:
    calls = 0

    async def factory():
        nonlocal calls
        calls += 1
        return _Echo()

    shared = SharedBackend(factory, timeout=None)
    first = await shared.get()
    shared.reset()
    second = await shared.get()
    assert calls == 2
    assert first is not second


@pytest.mark.asyncio
async def test_shared_backend_reset_during_init_discards_stale_result() -> None:
    release = asyncio.Event()
    made = []

    async def factory():
        await release.wait()
        backend = _Echo()
        made.append(backend)
        return backend

    shared = SharedBackend(factory, timeout=None)
    stale_get = asyncio.ensure_future(shared.get())
    await asyncio.sleep(0)
    shared.reset()
    release.set()

    stale = await stale_get
    assert stale is made[0]
    assert not shared.ready

    fresh = await shared.get()
    assert fresh is not stale
    assert shared.init_attempts == 2
