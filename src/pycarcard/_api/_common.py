"""Shared helpers for CarCard endpoint modules.

This module centralizes the most repeated patterns:
- dispatching a request through the transport
- mapping HTTP failures onto the exception hierarchy
- extracting a user-facing message from a failure

It is internal to pycarcard and may change at any time.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from pycarcard._constants import RETIRED_ERROR_CODES, RETIRED_STATUS_CODES
from pycarcard._transport import Response, Transport
from pycarcard.exceptions import (
    CarCardAuthenticationError,
    CarCardEndpointNotSupportedError,
    CarCardError,
    CarCardTransportError,
)

_logger = logging.getLogger(__name__)

Method = Literal["get", "post", "put", "patch"]


def classify_transport_error(exc: CarCardTransportError) -> CarCardTransportError:
    """Return the most specific error type for a transport failure."""
    if type(exc) is not CarCardTransportError:
        return exc
    kwargs: dict[str, Any] = {
        "status_code": exc.status_code,
        "endpoint": exc.endpoint,
        "payload": exc.payload,
    }
    if exc.status_code == 401:
        return CarCardAuthenticationError(str(exc), **kwargs)
    if exc.status_code in RETIRED_STATUS_CODES or exc.error_code in RETIRED_ERROR_CODES:
        return CarCardEndpointNotSupportedError(
            f"{exc.endpoint} not supported (status={exc.status_code} code={exc.error_code})",
            **kwargs,
        )
    return exc


async def send(transport: Transport, method: Method, path: str, body: Any = None) -> Any:
    """Send a request and return the decoded response body."""
    try:
        response: Response
        if method == "get":
            response = await transport.get(path)
        elif method == "post":
            response = await transport.post(path, body)
        elif method == "put":
            response = await transport.put(path, body)
        else:
            response = await transport.patch(path, body)
    except CarCardTransportError as exc:
        classified = classify_transport_error(exc)
        if classified is exc:
            raise
        raise classified from exc
    return response.data


def error_message(exc: BaseException, fallback: str) -> str:
    """Pick the message to surface for a failed call.

    Server-provided messages (validation, conflicts) are shown verbatim;
    anything else gets the per-operation *fallback*.
    """
    if isinstance(exc, CarCardTransportError):
        message = exc.server_message
        if message:
            return message
    elif isinstance(exc, CarCardError):
        _logger.debug("Using fallback message for %s: %s", type(exc).__name__, exc)
    return fallback
