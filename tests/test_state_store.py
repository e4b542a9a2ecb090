from __future__ import annotations

from typing import Any

from pycarcard.ingestion.normalize import normalize_tag
from pycarcard.models.tag import PrivacySetting, Tag
from pycarcard.state.store import EntityStore, StoreState, merge_tag


def _tag(tag_id: str, code: str = "", **extra: Any) -> Tag:
    raw: dict[str, Any] = {"_id": tag_id, **extra}
    if code:
        raw["code"] = code
    return normalize_tag(raw)


def test_upsert_appends_new_and_replaces_in_place() -> None:
    store = EntityStore()
    store.upsert(_tag("a", nickname="first"))
    store.upsert(_tag("b"))
    store.upsert(_tag("a", nickname="second"))

    assert [t.identity for t in store.tags] == ["a", "b"]
    assert store.tags[0].nickname == "second"


def test_merge_tag_drops_further_duplicates() -> None:
    tags = (_tag("a", "X"), _tag("b"), _tag("c", "X"))
    merged = merge_tag(tags, _tag("a", "X", nickname="new"))

    assert [t.identity for t in merged] == ["a", "b"]
    assert merged[0].nickname == "new"


def test_replace_all_dedupes_and_drops_absent() -> None:
    store = EntityStore()
    store.upsert(_tag("gone"))
    store.replace_all([_tag("a", "X"), _tag("b"), _tag("a", "X", nickname="dup")], error=None)

    assert [t.identity for t in store.tags] == ["a", "b"]
    assert store.tags[0].nickname == "dup"


def test_replace_matching_by_code_key() -> None:
    store = EntityStore()
    store.replace_all([_tag("a", "X"), _tag("b", "Y")])

    store.replace_matching("Y", _tag("b", "Y", nickname="renamed"))

    assert [t.identity for t in store.tags] == ["a", "b"]
    assert store.tags[1].nickname == "renamed"


def test_replace_matching_removes_other_copies_of_the_entity() -> None:
    store = EntityStore()
    store.set_state(tags=[_tag("old-id", "X"), _tag("b"), _tag("new-id", "X")])

    store.replace_matching("old-id", _tag("new-id", "X", nickname="merged"))

    assert [t.identity for t in store.tags] == ["new-id", "b"]
    assert store.tags[0].nickname == "merged"


def test_replace_matching_falls_back_to_upsert() -> None:
    store = EntityStore()
    store.upsert(_tag("a"))

    store.replace_matching("missing", _tag("c"))

    assert [t.identity for t in store.tags] == ["a", "c"]


def test_update_transforms_matching_tag() -> None:
    store = EntityStore()
    store.replace_all([_tag("a"), _tag("b")])

    updated = store.update("b", lambda t: t.with_privacy(t.privacy.toggled(PrivacySetting.ALLOW_SMS)))

    assert updated is not None
    assert updated.privacy.allow_sms is True
    assert store.tags[1] is updated
    assert store.tags[0].privacy.allow_sms is False


def test_update_without_match_leaves_state_and_listeners_alone() -> None:
    store = EntityStore()
    store.upsert(_tag("a"))
    seen: list[StoreState] = []
    store.subscribe(seen.append)
    before = store.state

    assert store.update("missing", lambda t: t) is None
    assert store.state is before
    assert seen == []


def test_each_change_notifies_once_with_new_snapshot() -> None:
    store = EntityStore()
    seen: list[StoreState] = []
    store.subscribe(seen.append)

    store.set_loading(True)
    store.upsert(_tag("a"), is_loading=False, error=None)

    assert len(seen) == 2
    assert seen[0].is_loading is True
    assert seen[0].tags == ()
    assert seen[1].is_loading is False
    assert [t.identity for t in seen[1].tags] == ["a"]


def test_unsubscribe_stops_notifications() -> None:
    store = EntityStore()
    seen: list[StoreState] = []
    unsubscribe = store.subscribe(seen.append)

    store.set_error("boom")
    unsubscribe()
    unsubscribe()
    store.set_error(None)

    assert len(seen) == 1
    assert seen[0].error == "boom"


def test_failing_listener_does_not_block_others() -> None:
    store = EntityStore()
    seen: list[StoreState] = []

    def _broken(state: StoreState) -> None:
        raise RuntimeError("listener bug")

    store.subscribe(_broken)
    store.subscribe(seen.append)
    store.upsert(_tag("a"))

    assert len(seen) == 1


def test_find_and_clear() -> None:
    store = EntityStore()
    store.replace_all([_tag("a", "X")], error="stale")

    found = store.find("X")
    assert found is not None
    assert found.identity == "a"
    assert store.find("nope") is None

    store.clear()
    assert store.state == StoreState()
