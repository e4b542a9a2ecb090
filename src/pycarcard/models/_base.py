"""Base model and enum for CarCard API payloads.

Every wire model inherits from :class:`CarCardBaseModel` which provides
``alias_generator=to_camel`` so camelCase API keys map to snake_case
fields, and ignores keys the model does not declare.

Status enums inherit from :class:`CarCardEnum` which resolves unmapped
or differently-cased values to ``UNKNOWN`` instead of raising.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_api_timestamp(value: Any) -> datetime | None:
    """Convert an API timestamp to a timezone-aware datetime.

    Accepts datetimes, epoch seconds or milliseconds (numbers or numeric
    strings) and ISO-8601 strings.  Anything else yields ``None``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        ts = float(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            ts = float(text)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                return None
            return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    else:
        return None
    if ts >= _MS_THRESHOLD:
        ts /= 1000.0
    try:
        return datetime.fromtimestamp(ts, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


ApiTimestamp = Annotated[datetime | None, BeforeValidator(parse_api_timestamp)]
"""Annotated type that coerces epoch numbers and ISO strings to UTC datetimes."""


class CarCardEnum(enum.StrEnum):
    """Base for CarCard string enums.

    Every subclass **must** define ``UNKNOWN``.  Lookups are
    case-insensitive; values without a mapped member resolve to
    ``UNKNOWN``.
    """

    @classmethod
    def _missing_(cls, value: object) -> CarCardEnum:
        if isinstance(value, str):
            upper = value.strip().upper()
            for member in cls:
                if member.value == upper:
                    return member
        unknown: CarCardEnum = cls.UNKNOWN  # type: ignore[attr-defined]
        return unknown


class CarCardBaseModel(BaseModel):
    """Base for CarCard wire models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
    )
