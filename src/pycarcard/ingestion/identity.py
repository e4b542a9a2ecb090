"""Identity resolution for tags.

Registration, activation and listing endpoints have historically returned
different subsets of ``_id`` / ``id`` / ``code``.  Everything that needs
to decide "is this the same tag" goes through this module.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pycarcard.models.tag import Tag

# Priority order: server primary id, id alias, printed code.
_SERVER_ID_FIELDS: tuple[str, ...] = ("_id", "id")
_IDENTITY_FIELDS: tuple[str, ...] = (*_SERVER_ID_FIELDS, "code")


def _clean_key(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (str, int)):
        return None
    text = str(value).strip()
    return text or None


def _first_key(raw: Mapping[str, Any], fields: tuple[str, ...]) -> str | None:
    for field_name in fields:
        key = _clean_key(raw.get(field_name))
        if key is not None:
            return key
    return None


def resolve_identity(raw: Mapping[str, Any]) -> str | None:
    """Return the stable store key for a raw payload, or ``None``."""
    return _first_key(raw, _IDENTITY_FIELDS)


def resolve_server_id(raw: Mapping[str, Any]) -> str | None:
    """Return the server-assigned id, ignoring the printed code."""
    return _first_key(raw, _SERVER_ID_FIELDS)


def same_entity(a: Tag, b: Tag) -> bool:
    """Whether two canonical tags describe the same physical tag.

    A matching printed code counts too: a freshly activated tag may come
    back with a different id shape than a placeholder cached for the
    same code.
    """
    if a.identity == b.identity:
        return True
    return bool(a.code) and a.code == b.code


def matches_key(tag: Tag, key: str) -> bool:
    """Whether a caller-supplied id (identity, server id or code) names *tag*."""
    if not key:
        return False
    return key in (tag.identity, tag.server_id, tag.code)
