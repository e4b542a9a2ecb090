"""Ingestion layer.

Turns raw tag payloads from any CarCard endpoint into canonical
:class:`~pycarcard.models.tag.Tag` objects.  Only the state layer is
allowed to merge them into the store.
"""

from pycarcard.ingestion.identity import matches_key, resolve_identity, resolve_server_id, same_entity
from pycarcard.ingestion.normalize import extract_tag_payload, normalize_tag, normalize_tags

__all__ = [
    "extract_tag_payload",
    "matches_key",
    "normalize_tag",
    "normalize_tags",
    "resolve_identity",
    "resolve_server_id",
    "same_entity",
]
