from __future__ import annotations

import asyncio

import pytest

from pycarcard.state.coalescer import RequestCoalescer
from pycarcard.state.freshness import FreshnessCache


class _Clock:
    def __init__(self) -> None:
        self.now = 500.0

    def __call__(self) -> float:
        return self.now


# ---------------------------------------------------------------------------
# FreshnessCache
# ---------------------------------------------------------------------------


def test_never_fetched_is_stale() -> None:
    cache = FreshnessCache(30, clock=_Clock())
    assert cache.last_fetched_at is None
    assert cache.age() is None
    assert cache.is_fresh(True) is False


def test_fresh_until_ttl_elapses() -> None:
    clock = _Clock()
    cache = FreshnessCache(30, clock=clock)
    cache.mark_fetched()

    clock.now += 29.9
    assert cache.is_fresh(True) is True
    clock.now += 0.1
    assert cache.is_fresh(True) is False


def test_empty_collection_is_never_fresh() -> None:
    cache = FreshnessCache(30, clock=_Clock())
    cache.mark_fetched()
    assert cache.is_fresh(False) is False


def test_invalidate_forgets_timestamp() -> None:
    cache = FreshnessCache(clock=_Clock())
    assert cache.ttl == 30.0
    cache.mark_fetched()
    cache.invalidate()
    assert cache.is_fresh(True) is False


# ---------------------------------------------------------------------------
# RequestCoalescer
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_call() -> None:
    coalescer: RequestCoalescer[str] = RequestCoalescer()
    release = asyncio.Event()
    calls = 0

    async def _load() -> str:
        nonlocal calls
        calls += 1
        await release.wait()
        return "loaded"

    waiters = [asyncio.create_task(coalescer.run(_load)) for _ in range(4)]
    await asyncio.sleep(0)
    assert coalescer.in_flight is True

    release.set()
    assert await asyncio.gather(*waiters) == ["loaded"] * 4
    assert calls == 1
    assert coalescer.in_flight is False


@pytest.mark.asyncio
async def test_fresh_data_skips_the_call() -> None:
    coalescer: RequestCoalescer[str] = RequestCoalescer()
    calls = 0

    async def _load() -> str:
        nonlocal calls
        calls += 1
        return "loaded"

    assert await coalescer.run(_load, is_fresh=lambda: True) is None
    assert calls == 0
    assert await coalescer.run(_load, force=True, is_fresh=lambda: True) == "loaded"
    assert calls == 1


@pytest.mark.asyncio
async def test_forced_call_starts_a_new_request_while_one_is_in_flight() -> None:
    coalescer: RequestCoalescer[int] = RequestCoalescer()
    first_release = asyncio.Event()
    calls = 0

    async def _load() -> int:
        nonlocal calls
        calls += 1
        number = calls
        if number == 1:
            await first_release.wait()
        return number

    first = asyncio.create_task(coalescer.run(_load))
    await asyncio.sleep(0)
    forced = await coalescer.run(_load, force=True)

    assert forced == 2
    first_release.set()
    assert await first == 1
    assert coalescer.in_flight is False


@pytest.mark.asyncio
async def test_failure_reaches_every_caller_and_clears_marker() -> None:
    coalescer: RequestCoalescer[str] = RequestCoalescer()
    release = asyncio.Event()

    async def _load() -> str:
        await release.wait()
        raise RuntimeError("backend down")

    waiters = [asyncio.create_task(coalescer.run(_load)) for _ in range(3)]
    await asyncio.sleep(0)
    release.set()
    results = await asyncio.gather(*waiters, return_exceptions=True)

    assert all(isinstance(r, RuntimeError) for r in results)
    assert coalescer.in_flight is False

    async def _ok() -> str:
        return "recovered"

    assert await coalescer.run(_ok) == "recovered"


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_shared_call() -> None:
    coalescer: RequestCoalescer[str] = RequestCoalescer()
    release = asyncio.Event()

    async def _load() -> str:
        await release.wait()
        return "loaded"

    cancelled = asyncio.create_task(coalescer.run(_load))
    survivor = asyncio.create_task(coalescer.run(_load))
    await asyncio.sleep(0)

    cancelled.cancel()
    with pytest.raises(asyncio.CancelledError):
        await cancelled

    release.set()
    assert await survivor == "loaded"
