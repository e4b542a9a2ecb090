"""In-memory entity store for canonical tags.

This is the only component allowed to change the tag collection.  Every
change replaces the immutable :class:`StoreState` snapshot and notifies
subscribers with the new one.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict

from pycarcard.ingestion.identity import matches_key, same_entity
from pycarcard.models.tag import Tag

_logger = logging.getLogger(__name__)

Listener = Callable[["StoreState"], None]


class StoreState(BaseModel):
    """Snapshot surfaced to the UI layer."""

    model_config = ConfigDict(frozen=True)

    tags: tuple[Tag, ...] = ()
    is_loading: bool = False
    error: str | None = None


def merge_tag(tags: Sequence[Tag], incoming: Tag) -> tuple[Tag, ...]:
    """Return *tags* with *incoming* upserted.

    The first entry describing the same entity is replaced in place; any
    further entries for that entity are dropped so the collection never
    holds duplicates.  Without a match the tag is appended.
    """
    merged: list[Tag] = []
    replaced = False
    for existing in tags:
        if not same_entity(existing, incoming):
            merged.append(existing)
        elif not replaced:
            merged.append(incoming)
            replaced = True
    if not replaced:
        merged.append(incoming)
    return tuple(merged)


class EntityStore:
    """Ordered, duplicate-free collection of canonical tags."""

    def __init__(self) -> None:
        self._state = StoreState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def tags(self) -> tuple[Tag, ...]:
        return self._state.tags

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                _logger.debug("Store listener failed", exc_info=True)

    def set_state(self, **changes: Any) -> None:
        """Replace fields of the snapshot and notify once."""
        if "tags" in changes:
            changes["tags"] = tuple(changes["tags"])
        self._state = self._state.model_copy(update=changes)
        self._notify()

    def set_loading(self, is_loading: bool) -> None:
        self.set_state(is_loading=is_loading)

    def set_error(self, error: str | None) -> None:
        self.set_state(error=error)

    def find(self, key: str) -> Tag | None:
        """Return the tag a caller-supplied id refers to, if cached."""
        for tag in self._state.tags:
            if matches_key(tag, key):
                return tag
        return None

    def upsert(self, tag: Tag, **changes: Any) -> None:
        """Insert or replace *tag*, applying any extra state *changes* atomically."""
        self.set_state(tags=merge_tag(self._state.tags, tag), **changes)

    def replace_all(self, tags: Iterable[Tag], **changes: Any) -> None:
        """Replace the collection after a full fetch; absent tags are dropped."""
        merged: tuple[Tag, ...] = ()
        for tag in tags:
            merged = merge_tag(merged, tag)
        self.set_state(tags=merged, **changes)

    def replace_matching(self, key: str, tag: Tag, **changes: Any) -> None:
        """Replace the entry *key* refers to with a server-confirmed *tag*.

        Falls back to :meth:`upsert` when nothing matches *key*.
        """
        current = self._state.tags
        for index, existing in enumerate(current):
            if matches_key(existing, key):
                rest = tuple(t for t in current[index + 1 :] if not same_entity(t, tag))
                head = tuple(t for t in current[:index] if not same_entity(t, tag))
                self.set_state(tags=(*head, tag, *rest), **changes)
                return
        self.upsert(tag, **changes)

    def update(self, key: str, transform: Callable[[Tag], Tag]) -> Tag | None:
        """Apply a pure *transform* to the tag *key* refers to.

        Returns the transformed tag, or ``None`` when no tag matches (the
        store is left untouched and subscribers are not notified).
        """
        current = self._state.tags
        for index, existing in enumerate(current):
            if matches_key(existing, key):
                updated = transform(existing)
                self.set_state(tags=(*current[:index], updated, *current[index + 1 :]))
                return updated
        return None

    def clear(self) -> None:
        self.set_state(tags=(), is_loading=False, error=None)
