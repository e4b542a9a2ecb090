"""Client configuration for pycarcard."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pycarcard._constants import BASE_URL, TAG_CACHE_TTL_SECONDS
from pycarcard.exceptions import CarCardConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise CarCardConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class CarCardConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        API base URL including the ``/api`` prefix.
    token : str or None
        Bearer token attached to every request.  ``None`` sends
        unauthenticated requests (the public scan lookup still works).
    timeout : float
        Total request timeout in seconds.
    tag_cache_ttl : float
        Seconds a successful tag list fetch stays fresh.  Non-forced
        fetches inside this window are served from memory.
    legacy_domain_fallback : bool
        Alias unrecognized tag domains to ``CAR`` instead of mapping them
        to ``UNKNOWN``.  Matches the behaviour of older app builds.
    app_headers : bool
        Send the ``x-carcard-app`` marker header.
    api_trace_enabled : bool
        Log redacted request/response bodies at DEBUG level.
    """

    base_url: str = BASE_URL
    token: str | None = None
    timeout: float = 10.0
    tag_cache_ttl: float = TAG_CACHE_TTL_SECONDS
    legacy_domain_fallback: bool = False
    app_headers: bool = True
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise CarCardConfigError(f"timeout must be positive, got {self.timeout}")
        if self.tag_cache_ttl < 0:
            raise CarCardConfigError(f"tag_cache_ttl must not be negative, got {self.tag_cache_ttl}")

    @classmethod
    def from_env(cls, **overrides: Any) -> CarCardConfig:
        """Create configuration from ``CARCARD_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("CARCARD_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url.rstrip("/")

        token = env.get("CARCARD_TOKEN")
        if token:
            config_kwargs["token"] = token

        for env_key, field_name in (
            ("CARCARD_TIMEOUT", "timeout"),
            ("CARCARD_TAG_CACHE_TTL", "tag_cache_ttl"),
        ):
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        if "legacy_domain_fallback" not in overrides:
            config_kwargs["legacy_domain_fallback"] = _env_bool(env.get("CARCARD_LEGACY_DOMAIN_FALLBACK"), False)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(env.get("CARCARD_API_TRACE_ENABLED"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
