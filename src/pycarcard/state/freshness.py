"""Time-to-live tracking for the tag collection."""

from __future__ import annotations

import time
from collections.abc import Callable

from pycarcard._constants import TAG_CACHE_TTL_SECONDS


class FreshnessCache:
    """Remembers when the collection was last loaded successfully.

    Tag lists change rarely, so a short TTL bounds staleness without
    needing push invalidation.  ``clock`` must be monotonic.
    """

    def __init__(
        self,
        ttl: float = TAG_CACHE_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._last_fetched_at: float | None = None

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def last_fetched_at(self) -> float | None:
        return self._last_fetched_at

    def mark_fetched(self) -> None:
        self._last_fetched_at = self._clock()

    def invalidate(self) -> None:
        self._last_fetched_at = None

    def age(self) -> float | None:
        """Seconds since the last successful fetch, or ``None``."""
        if self._last_fetched_at is None:
            return None
        return self._clock() - self._last_fetched_at

    def is_fresh(self, has_entities: bool) -> bool:
        """Whether a non-forced fetch may be skipped.

        An empty store is never fresh: there is nothing worth keeping.
        """
        age = self.age()
        return has_entities and age is not None and age < self._ttl
