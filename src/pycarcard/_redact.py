"""Helpers for safe debug logging.

Tag payloads carry phone numbers, one-time passwords and bearer tokens.
This module masks those fields before they reach DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "otp",
        "token",
        "accesstoken",
        "refreshtoken",
        "authorization",
        "cookie",
        "password",
    }
)

# Phone numbers keep their last digits so log lines stay correlatable.
_PHONE_KEYS: frozenset[str] = frozenset({"phone", "phonenumber", "mobile"})
_PHONE_VISIBLE_DIGITS = 4


def mask_phone(value: str) -> str:
    """Return *value* with all but the last few characters masked."""
    text = str(value)
    if len(text) <= _PHONE_VISIBLE_DIGITS:
        return "*" * len(text)
    return "*" * (len(text) - _PHONE_VISIBLE_DIGITS) + text[-_PHONE_VISIBLE_DIGITS:]


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs."""
    if _depth > 20:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        redacted: dict[str, Any] = {}
        for k, v in value.items():
            key = str(k)
            lowered = key.lower()
            if lowered in _SECRET_KEYS:
                redacted[key] = "<redacted>"
            elif lowered in _PHONE_KEYS and isinstance(v, (str, int)):
                redacted[key] = mask_phone(str(v))
            else:
                redacted[key] = redact_for_log(v, max_string=max_string, _depth=_depth + 1)
        return redacted

    if isinstance(value, Sequence) and not isinstance(value, bytearray):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
