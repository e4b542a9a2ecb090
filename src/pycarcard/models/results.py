"""Typed results returned by the client facade.

Client methods never raise for server-side failures; callers branch on
these values and read the user-facing message from ``client.error``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ActivationResult(BaseModel):
    """Outcome of phone-verified tag activation."""

    model_config = ConfigDict(frozen=True)

    success: bool
    user: dict[str, Any] | None = None
    token: str | None = None


class UpdateResult(BaseModel):
    """Outcome of a tag update request."""

    model_config = ConfigDict(frozen=True)

    success: bool
    otp_required: bool = False
    """The server wants the change confirmed through the OTP flow."""
    unsupported: bool = False
    """The update endpoint is retired; further calls fail fast."""
    pending: dict[str, Any] = Field(default_factory=dict)
    """Changes to resubmit with the OTP verification step."""
