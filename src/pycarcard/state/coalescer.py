"""Single-flight execution of the collection fetch."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class RequestCoalescer(Generic[T]):
    """Keeps at most one fetch in flight; concurrent callers share it.

    Each caller awaits the shared task through :func:`asyncio.shield`, so
    one caller being cancelled never cancels the request for the others.
    """

    def __init__(self) -> None:
        self._inflight: asyncio.Task[T] | None = None

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    async def _guarded(self, factory: Callable[[], Coroutine[Any, Any, T]]) -> T:
        try:
            return await factory()
        finally:
            # A forced run may have replaced us; only clear our own marker.
            if self._inflight is asyncio.current_task():
                self._inflight = None

    async def run(
        self,
        factory: Callable[[], Coroutine[Any, Any, T]],
        *,
        force: bool = False,
        is_fresh: Callable[[], bool] | None = None,
    ) -> T | None:
        """Join the in-flight call, skip when fresh, or start a new call.

        Returns ``None`` when the call was skipped because the cached data
        is still fresh.
        """
        inflight = self._inflight
        if not force and inflight is not None:
            return await asyncio.shield(inflight)

        if not force and is_fresh is not None and is_fresh():
            return None

        task = asyncio.get_running_loop().create_task(self._guarded(factory))
        self._inflight = task
        return await asyncio.shield(task)
