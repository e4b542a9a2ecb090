"""Canonical tag model."""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal

from pydantic import ConfigDict, Field

from pycarcard.models._base import ApiTimestamp, CarCardBaseModel, CarCardEnum


class TagDomain(enum.StrEnum):
    """What the physical tag is attached to.

    ``UNKNOWN`` marks payloads whose domain the client does not recognize;
    it is never sent back to the server.
    """

    CAR = "CAR"
    KID = "KID"
    PET = "PET"
    UNKNOWN = "UNKNOWN"


class TagStatus(CarCardEnum):
    """Server-side lifecycle status of a tag."""

    MINTED = "MINTED"
    UNCLAIMED = "UNCLAIMED"
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    REVOKED = "REVOKED"
    UNKNOWN = "UNKNOWN"


class PrivacySetting(enum.StrEnum):
    """Privacy toggles, valued by their wire (camelCase) name."""

    ALLOW_MASKED_CALL = "allowMaskedCall"
    ALLOW_WHATSAPP = "allowWhatsapp"
    ALLOW_SMS = "allowSms"
    SHOW_EMERGENCY_CONTACT = "showEmergencyContact"

    @classmethod
    def _missing_(cls, value: object) -> PrivacySetting | None:
        # Also accept the snake_case attribute name.
        if isinstance(value, str):
            for member in cls:
                if member.field_name == value:
                    return member
        return None

    @property
    def field_name(self) -> str:
        """Attribute name on :class:`PrivacySettings`."""
        return self.name.lower()


class PrivacySettings(CarCardBaseModel):
    """Contact-masking toggles shown to whoever scans the tag."""

    allow_masked_call: bool = False
    allow_whatsapp: bool = False
    allow_sms: bool = False
    show_emergency_contact: bool = False

    def get(self, setting: PrivacySetting) -> bool:
        return bool(getattr(self, setting.field_name))

    def toggled(self, setting: PrivacySetting) -> PrivacySettings:
        """Return a copy with *setting* flipped."""
        return self.model_copy(update={setting.field_name: not self.get(setting)})


class ScanRecord(CarCardBaseModel):
    """One server-recorded scan of the tag."""

    timestamp: ApiTimestamp = None
    location: str | dict[str, Any] | None = None


class EmergencyContact(CarCardBaseModel):
    name: str | None = None
    phone: str | None = None


class _DisplayConfigBase(CarCardBaseModel):
    # Free-form attributes the backend adds per domain are kept as extras.
    model_config = ConfigDict(extra="allow")

    display_name: str | None = None

    @property
    def extras(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class VehicleConfig(_DisplayConfigBase):
    domain: Literal[TagDomain.CAR] = TagDomain.CAR
    plate_number: str | None = None


class ChildConfig(_DisplayConfigBase):
    domain: Literal[TagDomain.KID] = TagDomain.KID
    child_name: str | None = None


class PetConfig(_DisplayConfigBase):
    domain: Literal[TagDomain.PET] = TagDomain.PET
    pet_name: str | None = None


class UnknownConfig(_DisplayConfigBase):
    domain: Literal[TagDomain.UNKNOWN] = TagDomain.UNKNOWN


DisplayConfig = Annotated[
    VehicleConfig | ChildConfig | PetConfig | UnknownConfig,
    Field(discriminator="domain"),
]

DISPLAY_CONFIG_TYPES: dict[TagDomain, type[_DisplayConfigBase]] = {
    TagDomain.CAR: VehicleConfig,
    TagDomain.KID: ChildConfig,
    TagDomain.PET: PetConfig,
    TagDomain.UNKNOWN: UnknownConfig,
}


class Tag(CarCardBaseModel):
    """A registered physical tag in canonical form.

    Built by :func:`pycarcard.ingestion.normalize.normalize_tag`; never
    constructed from a raw payload directly.
    """

    identity: str
    """Stable store key (server id, id alias, or code)."""
    server_id: str | None = None
    """Server-assigned id, when the payload carried one."""
    code: str = ""
    """Printed/scanned tag code."""
    domain: TagDomain = TagDomain.CAR
    display_config: DisplayConfig = Field(default_factory=VehicleConfig)
    nickname: str = ""
    is_active: bool = False
    status: TagStatus | None = None
    privacy: PrivacySettings = Field(default_factory=PrivacySettings)
    emergency_contact: EmergencyContact | None = None
    user_id: str | None = None
    scan_history: tuple[ScanRecord, ...] = ()
    """Scans in server order; the client never appends."""

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original API payload for access to additional fields."""

    def with_privacy(self, privacy: PrivacySettings) -> Tag:
        return self.model_copy(update={"privacy": privacy})
