"""Internal constants shared across the library."""

BASE_URL = "http://localhost:5000/api"
USER_AGENT = "pycarcard"
APP_HEADER = "x-carcard-app"

#: Seconds a successful full fetch is considered fresh.
TAG_CACHE_TTL_SECONDS: float = 30.0

# ------------------------------------------------------------------
# Endpoint paths
# ------------------------------------------------------------------

TAGS = "/tags"
TAGS_ACTIVATE = "/tags/activate"
TAGS_ACTIVATE_SEND_OTP = "/tags/activate/send-otp"
TAGS_ACTIVATE_VERIFY_OTP = "/tags/activate/verify-otp"


def tag_path(tag_id: str) -> str:
    return f"/tags/{tag_id}"


def tag_privacy_path(tag_id: str) -> str:
    return f"/tags/{tag_id}/privacy"


def tag_public_path(tag_id: str) -> str:
    return f"/tags/{tag_id}/public"


def tag_otp_send_path(tag_id: str) -> str:
    return f"/tags/{tag_id}/otp/send"


def tag_otp_verify_path(tag_id: str) -> str:
    return f"/tags/{tag_id}/otp/verify"


# ------------------------------------------------------------------
# Endpoint retirement signals
# ------------------------------------------------------------------

#: HTTP statuses the backend uses for retired endpoints.
RETIRED_STATUS_CODES: frozenset[int] = frozenset({410, 501})

#: Structured error codes the backend uses for retired endpoints.
RETIRED_ERROR_CODES: frozenset[str] = frozenset({"NOT_IMPLEMENTED", "ENDPOINT_MIGRATED", "ENDPOINT_RETIRED"})

#: Message fragments emitted by backends that predate structured codes.
LEGACY_RETIRED_MESSAGES: tuple[str, ...] = (
    "Not Implemented in V2 API",
    "Migrated to /v1/tags/:id/configuration",
)
