"""Per-endpoint circuit breaker for retired server endpoints.

Several tag endpoints are mid-migration on the backend.  Once the server
says an endpoint is gone, the gate remembers it for the rest of the
process lifetime and callers fail fast with a stable message instead of
paying for another round trip.
"""

from __future__ import annotations

import enum
import logging

from pycarcard._constants import LEGACY_RETIRED_MESSAGES
from pycarcard.exceptions import CarCardEndpointNotSupportedError, CarCardTransportError

_logger = logging.getLogger(__name__)


class Capability(enum.StrEnum):
    ACTIVATE = "activate"
    UPDATE = "update"
    OTP_SEND = "otp_send"
    OTP_VERIFY = "otp_verify"


# Shown when a call is short-circuited by an already tripped gate.
_UNAVAILABLE_MESSAGES: dict[Capability, str] = {
    Capability.ACTIVATE: "Tag activation endpoint is currently unavailable.",
    Capability.UPDATE: "Tag update endpoint is currently unavailable.",
    Capability.OTP_SEND: "Tag OTP verification endpoint is currently unavailable.",
    Capability.OTP_VERIFY: "Tag OTP verification endpoint is currently unavailable.",
}

# Shown by the call that trips the gate.
_TRIPPED_MESSAGES: dict[Capability, str] = {
    Capability.ACTIVATE: "Tag activation is temporarily unavailable.",
    Capability.UPDATE: "Tag edit is temporarily unavailable while backend migration is in progress.",
    Capability.OTP_SEND: "Tag OTP verification is temporarily unavailable.",
    Capability.OTP_VERIFY: "Tag OTP verification is temporarily unavailable.",
}


def _matches_legacy_retirement_message(message: str | None) -> bool:
    # Compatibility shim for backends that only say so in prose.
    if not message:
        return False
    return any(marker in message for marker in LEGACY_RETIRED_MESSAGES)


def is_retirement_signal(exc: BaseException) -> bool:
    """Whether *exc* means the endpoint has been retired server-side.

    The structured signal (:class:`CarCardEndpointNotSupportedError`, raised
    by the endpoint layer for HTTP 410/501 or a retirement error code) is
    authoritative; message matching is only a fallback.
    """
    if isinstance(exc, CarCardEndpointNotSupportedError):
        return True
    if isinstance(exc, CarCardTransportError):
        return _matches_legacy_retirement_message(exc.server_message)
    return False


class CapabilityGate:
    """Tracks which gated endpoints the server still supports."""

    def __init__(self) -> None:
        self._supported: dict[Capability, bool] = dict.fromkeys(Capability, True)

    def is_supported(self, capability: Capability) -> bool:
        return self._supported[capability]

    def trip(self, capability: Capability) -> None:
        """Mark *capability* unsupported for the rest of this gate's lifetime."""
        if self._supported[capability]:
            _logger.info("Endpoint for %s retired by server; disabling further calls", capability.value)
        self._supported[capability] = False

    def reset(self, capability: Capability | None = None) -> None:
        """Re-enable one capability, or all of them."""
        if capability is None:
            self._supported = dict.fromkeys(Capability, True)
        else:
            self._supported[capability] = True

    @staticmethod
    def unavailable_message(capability: Capability) -> str:
        return _UNAVAILABLE_MESSAGES[capability]

    @staticmethod
    def tripped_message(capability: Capability) -> str:
        return _TRIPPED_MESSAGES[capability]
