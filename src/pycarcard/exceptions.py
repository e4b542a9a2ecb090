"""Custom exception hierarchy for pycarcard."""

from __future__ import annotations

from typing import Any


class CarCardError(Exception):
    """Base exception for all pycarcard errors."""


class CarCardConfigError(CarCardError):
    """Invalid or missing configuration."""


class MalformedTagError(CarCardError):
    """A server payload carries no usable tag identity."""


class CarCardTransportError(CarCardError):
    """HTTP-level failure (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        payload: Any = None,
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.payload = payload
        super().__init__(message)

    @property
    def server_message(self) -> str | None:
        """Human-readable message supplied by the server, if any.

        The backend has used both ``{"message": ...}`` and
        ``{"error": {"message": ...}}`` over time.
        """
        payload = self.payload
        if not isinstance(payload, dict):
            return None
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
        nested = payload.get("error")
        if isinstance(nested, dict):
            message = nested.get("message")
            if isinstance(message, str) and message:
                return message
        return None

    @property
    def error_code(self) -> str | None:
        """Structured error code from the payload (``code`` or ``error.code``)."""
        payload = self.payload
        if not isinstance(payload, dict):
            return None
        code = payload.get("code")
        if code is None and isinstance(payload.get("error"), dict):
            code = payload["error"].get("code")
        return str(code) if code not in (None, "") else None


class CarCardAuthenticationError(CarCardTransportError):
    """Request rejected because the session is missing or expired (HTTP 401)."""


class CarCardEndpointNotSupportedError(CarCardTransportError):
    """Endpoint retired or migrated on the server.

    Raised when the server answers with HTTP 410/501 or with a structured
    retirement code.  Consumers should stop calling the endpoint for the
    rest of the process lifetime.
    """
