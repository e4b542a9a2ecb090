"""Tag endpoints.

Endpoints:
  - GET   /tags                          (list the user's tags)
  - POST  /tags                          (register a new tag)
  - POST  /tags/activate                 (claim a pre-manufactured tag)
  - POST  /tags/activate/send-otp        (phone-verified activation, step 1)
  - POST  /tags/activate/verify-otp      (phone-verified activation, step 2)
  - PATCH /tags/{id}/privacy             (toggle one privacy setting)
  - GET   /tags/{id}/public              (unauthenticated scan lookup)
  - PUT   /tags/{id}                     (update, may require OTP)
  - POST  /tags/{id}/otp/send            (update confirmation, step 1)
  - POST  /tags/{id}/otp/verify          (update confirmation, step 2)

Functions return decoded response bodies; normalization happens in the
client so every write path goes through the same store merge.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pycarcard import _constants as ep
from pycarcard._api._common import send
from pycarcard._transport import Transport
from pycarcard.exceptions import CarCardTransportError
from pycarcard.models.tag import PrivacySetting, TagDomain

_logger = logging.getLogger(__name__)


async def fetch_tags(transport: Transport) -> Any:
    """Fetch the full tag collection of the authenticated user."""
    return await send(transport, "get", ep.TAGS)


async def create_tag(
    transport: Transport,
    *,
    code: str,
    nickname: str,
    domain: TagDomain,
    plate_number: str,
) -> Any:
    body = {"code": code, "nickname": nickname, "domainType": domain.value, "plateNumber": plate_number}
    data = await send(transport, "post", ep.TAGS, body)
    _logger.debug("Tag registered code=%s", code)
    return data


async def activate_tag(
    transport: Transport,
    *,
    code: str,
    nickname: str,
    domain: TagDomain,
    plate_number: str,
) -> Any:
    body = {"code": code, "nickname": nickname, "domainType": domain.value, "plateNumber": plate_number}
    data = await send(transport, "post", ep.TAGS_ACTIVATE, body)
    _logger.debug("Tag activated code=%s", code)
    return data


async def send_activation_otp(transport: Transport, *, code: str, phone_number: str) -> Any:
    return await send(transport, "post", ep.TAGS_ACTIVATE_SEND_OTP, {"code": code, "phoneNumber": phone_number})


async def verify_activation_otp(
    transport: Transport,
    *,
    code: str,
    phone_number: str,
    otp: str,
    plate_number: str,
) -> Any:
    body = {"code": code, "phoneNumber": phone_number, "otp": otp, "plateNumber": plate_number}
    return await send(transport, "post", ep.TAGS_ACTIVATE_VERIFY_OTP, body)


async def set_privacy(transport: Transport, tag_id: str, setting: PrivacySetting) -> Any:
    """Ask the server to flip one privacy setting."""
    return await send(transport, "patch", ep.tag_privacy_path(tag_id), {"setting": setting.value})


async def fetch_public_tag(transport: Transport, tag_id: str) -> Any:
    """Look up a tag for the scan flow.

    A 403 carrying ``locked`` is a normal answer for locked tags: the
    locked payload is returned instead of raising.
    """
    try:
        return await send(transport, "get", ep.tag_public_path(tag_id))
    except CarCardTransportError as exc:
        payload = exc.payload
        if exc.status_code == 403 and isinstance(payload, Mapping) and payload.get("locked"):
            _logger.debug("Public tag %s is locked", tag_id)
            return dict(payload)
        raise


async def update_tag(transport: Transport, tag_id: str, data: Mapping[str, Any]) -> Any:
    """Submit changes; the server may answer ``{"otpRequired": true}``."""
    return await send(transport, "put", ep.tag_path(tag_id), dict(data))


async def send_tag_otp(
    transport: Transport,
    tag_id: str,
    *,
    phone_number: str,
    pending_data: Mapping[str, Any],
) -> Any:
    body = {"phoneNumber": phone_number, "pendingData": dict(pending_data)}
    return await send(transport, "post", ep.tag_otp_send_path(tag_id), body)


async def verify_tag_otp(
    transport: Transport,
    tag_id: str,
    *,
    phone_number: str,
    otp: str,
    pending_data: Mapping[str, Any],
) -> Any:
    body = {"phoneNumber": phone_number, "otp": otp, "pendingData": dict(pending_data)}
    return await send(transport, "post", ep.tag_otp_verify_path(tag_id), body)
