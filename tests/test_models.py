from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from pycarcard.models import PrivacySetting, PrivacySettings, Tag, TagStatus, parse_api_timestamp


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("allowSms", PrivacySetting.ALLOW_SMS),
        ("allow_sms", PrivacySetting.ALLOW_SMS),
        ("show_emergency_contact", PrivacySetting.SHOW_EMERGENCY_CONTACT),
    ],
)
def test_privacy_setting_accepts_wire_and_attribute_names(value: str, expected: PrivacySetting) -> None:
    assert PrivacySetting(value) is expected


def test_privacy_setting_rejects_unknown_names() -> None:
    with pytest.raises(ValueError):
        PrivacySetting("allowFax")


def test_privacy_settings_toggled_returns_copy() -> None:
    original = PrivacySettings(allow_sms=True)
    toggled = original.toggled(PrivacySetting.ALLOW_SMS).toggled(PrivacySetting.ALLOW_WHATSAPP)

    assert original.allow_sms is True
    assert toggled.allow_sms is False
    assert toggled.allow_whatsapp is True


def test_privacy_settings_accept_wire_names() -> None:
    assert PrivacySettings.model_validate({"allowMaskedCall": True}).allow_masked_call is True


@pytest.mark.parametrize(
    ("value", "expected"),
    [("ACTIVE", TagStatus.ACTIVE), ("revoked", TagStatus.REVOKED), ("RETIRED", TagStatus.UNKNOWN)],
)
def test_tag_status_is_lenient(value: str, expected: TagStatus) -> None:
    assert TagStatus(value) is expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1_700_000_000, datetime.fromtimestamp(1_700_000_000, tz=UTC)),
        (1_700_000_000_000, datetime.fromtimestamp(1_700_000_000, tz=UTC)),
        ("1700000000", datetime.fromtimestamp(1_700_000_000, tz=UTC)),
        ("2024-03-05T08:30:00", datetime(2024, 3, 5, 8, 30, tzinfo=UTC)),
        ("2024-03-05T08:30:00+00:00", datetime(2024, 3, 5, 8, 30, tzinfo=UTC)),
    ],
)
def test_parse_api_timestamp(value: object, expected: datetime) -> None:
    assert parse_api_timestamp(value) == expected


@pytest.mark.parametrize("value", [None, "", "yesterday", True, [1]])
def test_parse_api_timestamp_rejects_garbage(value: object) -> None:
    assert parse_api_timestamp(value) is None


def test_tag_is_immutable() -> None:
    tag = Tag(identity="t1")
    with pytest.raises(ValidationError):
        tag.nickname = "changed"  # type: ignore[misc]
