"""Data models for CarCard tag payloads."""

from pycarcard.models._base import ApiTimestamp, CarCardBaseModel, CarCardEnum, parse_api_timestamp
from pycarcard.models.results import ActivationResult, UpdateResult
from pycarcard.models.tag import (
    ChildConfig,
    DisplayConfig,
    EmergencyContact,
    PetConfig,
    PrivacySetting,
    PrivacySettings,
    ScanRecord,
    Tag,
    TagDomain,
    TagStatus,
    UnknownConfig,
    VehicleConfig,
)

__all__ = [
    "ActivationResult",
    "ApiTimestamp",
    "CarCardBaseModel",
    "CarCardEnum",
    "ChildConfig",
    "DisplayConfig",
    "EmergencyContact",
    "PetConfig",
    "PrivacySetting",
    "PrivacySettings",
    "ScanRecord",
    "Tag",
    "TagDomain",
    "TagStatus",
    "UnknownConfig",
    "UpdateResult",
    "VehicleConfig",
    "parse_api_timestamp",
]
