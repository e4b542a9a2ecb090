"""Normalization of raw tag payloads.

The backend has changed its tag shape several times without migrating
old records, so a single listing can mix:

* new-style rows with a ``config`` object and nested ``privacy``,
* rows carrying a per-domain ``carProfile`` / ``kidProfile`` / ``petProfile``,
* flat rows with ``plateNumber`` and privacy booleans at the top level.

Each shape has its own adapter; :func:`normalize_tag` applies them in a
fixed precedence order and always returns a fully populated
:class:`~pycarcard.models.tag.Tag`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from pycarcard.exceptions import MalformedTagError
from pycarcard.ingestion.identity import resolve_identity, resolve_server_id
from pycarcard.models.tag import (
    DISPLAY_CONFIG_TYPES,
    DisplayConfig,
    EmergencyContact,
    PrivacySetting,
    PrivacySettings,
    ScanRecord,
    Tag,
    TagDomain,
    TagStatus,
)

_logger = logging.getLogger(__name__)

_DOMAIN_ALIASES: dict[str, TagDomain] = {
    "CAR": TagDomain.CAR,
    "VEHICLE": TagDomain.CAR,
    "KID": TagDomain.KID,
    "CHILD": TagDomain.KID,
    "PET": TagDomain.PET,
}

_PROFILE_KEYS: dict[TagDomain, str] = {
    TagDomain.CAR: "carProfile",
    TagDomain.KID: "kidProfile",
    TagDomain.PET: "petProfile",
}

# Top-level fields of the flat legacy shape, per domain: target key -> source keys.
_FLAT_FIELDS: dict[TagDomain, dict[str, tuple[str, ...]]] = {
    TagDomain.CAR: {"plateNumber": ("plateNumber", "vehicleNumber"), "displayName": ("displayName",)},
    TagDomain.KID: {"childName": ("childName",), "displayName": ("displayName",)},
    TagDomain.PET: {"petName": ("petName",), "displayName": ("displayName",)},
    TagDomain.UNKNOWN: {"displayName": ("displayName",)},
}

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


def safe_str(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text if text else None


def coerce_bool(value: Any) -> bool:
    """Interpret a loosely typed wire flag; missing means ``False``."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return False


def is_meaningful(value: Any) -> bool:
    """Return True if a source value should fill a display attribute."""
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return value not in ({}, [])


def normalize_domain(value: Any, *, legacy_fallback: bool = False) -> TagDomain:
    """Coerce a wire domain value to :class:`TagDomain`.

    A missing value means ``CAR``: the earliest registration payloads
    were vehicle-only and never sent a domain.  A present but
    unrecognized value maps to ``UNKNOWN`` so it cannot pass for a real
    vehicle tag, unless *legacy_fallback* asks for the old aliasing.
    """
    text = safe_str(value)
    if text is None:
        return TagDomain.CAR
    domain = _DOMAIN_ALIASES.get(text.upper())
    if domain is not None:
        return domain
    if legacy_fallback:
        _logger.debug("Unrecognized tag domain %r aliased to CAR", text)
        return TagDomain.CAR
    _logger.warning("Unrecognized tag domain %r; marking tag as UNKNOWN", text)
    return TagDomain.UNKNOWN


def normalize_privacy(raw: Mapping[str, Any]) -> PrivacySettings:
    """Read privacy from the nested object, else flat fields, else ``False``."""
    nested = raw.get("privacy")
    nested_values: Mapping[str, Any] = nested if isinstance(nested, Mapping) else {}
    values: dict[str, bool] = {}
    for setting in PrivacySetting:
        value = nested_values.get(setting.value)
        if value is None:
            value = raw.get(setting.value)
        values[setting.field_name] = coerce_bool(value)
    return PrivacySettings(**values)


# ---------------------------------------------------------------------------
# display_config adapters, one per legacy shape
# ---------------------------------------------------------------------------


def _from_config_object(raw: Mapping[str, Any], domain: TagDomain) -> dict[str, Any] | None:
    config = raw.get("config")
    if isinstance(config, Mapping) and config:
        return dict(config)
    return None


def _from_domain_profile(raw: Mapping[str, Any], domain: TagDomain) -> dict[str, Any] | None:
    key = _PROFILE_KEYS.get(domain)
    if key is None:
        return None
    profile = raw.get(key)
    if isinstance(profile, Mapping) and profile:
        return dict(profile)
    return None


def _from_flat_fields(raw: Mapping[str, Any], domain: TagDomain) -> dict[str, Any]:
    found: dict[str, Any] = {}
    for target, sources in _FLAT_FIELDS[domain].items():
        for source in sources:
            value = raw.get(source)
            if is_meaningful(value):
                found[target] = value
                break
    return found


_OBJECT_ADAPTERS: tuple[Callable[[Mapping[str, Any], TagDomain], dict[str, Any] | None], ...] = (
    _from_config_object,
    _from_domain_profile,
)


def _drop_unusable_attributes(data: dict[str, Any], config_cls: type[BaseModel]) -> None:
    # Declared attributes are scalars; anything else survives only in Tag.raw.
    for name, field in config_cls.model_fields.items():
        if name == "domain":
            continue
        for key in {name, field.alias} - {None}:
            value = data.get(key)
            if value is None or (isinstance(value, (str, int, float)) and not isinstance(value, bool)):
                continue
            _logger.debug("Dropping %s display attribute %r of type %s", config_cls.__name__, key, type(value).__name__)
            del data[key]


def build_display_config(raw: Mapping[str, Any], domain: TagDomain) -> DisplayConfig:
    """Assemble the domain-shaped display attributes.

    The first object-shaped source wins as the base; flat top-level
    fields only fill attributes the base leaves empty.
    """
    data: dict[str, Any] = {}
    for adapter in _OBJECT_ADAPTERS:
        source = adapter(raw, domain)
        if source:
            data = source
            break

    # Older vehicle configs spell the plate "vehicleNumber".
    if "vehicleNumber" in data:
        legacy_plate = data.pop("vehicleNumber")
        if not is_meaningful(data.get("plateNumber")):
            data["plateNumber"] = legacy_plate

    for key, value in _from_flat_fields(raw, domain).items():
        if not is_meaningful(data.get(key)):
            data[key] = value

    data.pop("domain", None)
    config_cls = DISPLAY_CONFIG_TYPES[domain]
    _drop_unusable_attributes(data, config_cls)
    try:
        return config_cls.model_validate(data)  # type: ignore[return-value]
    except ValidationError as exc:
        raise MalformedTagError(f"Unusable display config for {domain.value} tag: {exc.error_count()} errors") from exc


def _parse_scans(value: Any) -> tuple[ScanRecord, ...]:
    if not isinstance(value, list):
        return ()
    scans: list[ScanRecord] = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        try:
            scans.append(ScanRecord.model_validate(item))
        except ValidationError:
            _logger.debug("Dropping unparseable scan record", exc_info=True)
    return tuple(scans)


def _parse_status(value: Any) -> TagStatus | None:
    text = safe_str(value)
    if text is None:
        return None
    return TagStatus(text)


def _parse_emergency_contact(value: Any) -> EmergencyContact | None:
    if not isinstance(value, Mapping) or not value:
        return None
    try:
        return EmergencyContact.model_validate(value)
    except ValidationError:
        _logger.debug("Dropping unparseable emergency contact", exc_info=True)
        return None


def normalize_tag(raw: Any, *, legacy_domain_fallback: bool = False) -> Tag:
    """Convert one raw payload into a canonical :class:`Tag`.

    Raises
    ------
    MalformedTagError
        If *raw* is not an object or carries no ``_id``, ``id`` or ``code``,
        or a field cannot be coerced to the canonical model.
    """
    if not isinstance(raw, Mapping):
        raise MalformedTagError(f"Tag payload must be an object, got {type(raw).__name__}")
    identity = resolve_identity(raw)
    if identity is None:
        raise MalformedTagError("Tag payload has no _id, id or code")

    domain = normalize_domain(raw.get("domainType") or raw.get("domain"), legacy_fallback=legacy_domain_fallback)
    status = _parse_status(raw.get("status"))
    explicit_active = raw.get("isActive")
    is_active = explicit_active if isinstance(explicit_active, bool) else status == TagStatus.ACTIVE

    try:
        return Tag(
            identity=identity,
            server_id=resolve_server_id(raw),
            code=safe_str(raw.get("code")) or "",
            domain=domain,
            display_config=build_display_config(raw, domain),
            nickname=safe_str(raw.get("nickname")) or "",
            is_active=is_active,
            status=status,
            privacy=normalize_privacy(raw),
            emergency_contact=_parse_emergency_contact(raw.get("emergencyContact")),
            user_id=safe_str(raw.get("userId")),
            scan_history=_parse_scans(raw.get("scans")),
            raw=dict(raw),
        )
    except ValidationError as exc:
        raise MalformedTagError(f"Tag {identity} failed validation: {exc.error_count()} errors") from exc


def normalize_tags(rows: Any, *, legacy_domain_fallback: bool = False) -> list[Tag]:
    """Normalize a listing; non-lists yield ``[]`` and malformed rows are skipped."""
    if not isinstance(rows, list):
        return []
    tags: list[Tag] = []
    for index, row in enumerate(rows):
        try:
            tags.append(normalize_tag(row, legacy_domain_fallback=legacy_domain_fallback))
        except MalformedTagError as exc:
            _logger.warning("Skipping tag row %d: %s", index, exc)
    return tags


def extract_tag_payload(data: Any) -> Any:
    """Unwrap ``{"tag": {...}}`` envelopes used by some write endpoints."""
    if isinstance(data, Mapping) and isinstance(data.get("tag"), Mapping):
        return data["tag"]
    return data
