"""Optimistic local mutation with rollback.

Only used for low-stakes fields (privacy toggles).  Two concurrent
mutations of the same tag and field are not serialized: the last server
response wins.  A per-entity lock would cost more than a briefly wrong
toggle.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pycarcard.exceptions import CarCardError
from pycarcard.models.tag import Tag
from pycarcard.state.store import EntityStore

_logger = logging.getLogger(__name__)


class OptimisticMutator:
    """Apply a change locally, confirm it remotely, undo it on failure."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    async def run(
        self,
        key: str,
        *,
        apply: Callable[[Tag], Tag],
        revert: Callable[[Tag], Tag],
        commit: Callable[[], Awaitable[Any]],
    ) -> bool:
        """Run one optimistic mutation of the tag *key* refers to.

        *apply* is visible to subscribers before *commit* is awaited.  If
        *commit* raises a :class:`CarCardError`, *revert* (the exact
        inverse of *apply*) is applied to the tag's current state and
        ``False`` is returned.  No pending state is modelled.
        """
        applied = self._store.update(key, apply) is not None
        try:
            await commit()
        except CarCardError:
            _logger.debug("Optimistic mutation of %s rejected; rolling back", key, exc_info=True)
            if applied:
                self._store.update(key, revert)
            return False
        return True
