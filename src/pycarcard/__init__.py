"""pycarcard - Async Python client for CarCard tag synchronization."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pycarcard")
except PackageNotFoundError:
    __version__ = "0+local"
from pycarcard.client import CarCardClient
from pycarcard.config import CarCardConfig
from pycarcard.exceptions import (
    CarCardAuthenticationError,
    CarCardConfigError,
    CarCardEndpointNotSupportedError,
    CarCardError,
    CarCardTransportError,
    MalformedTagError,
)
from pycarcard.models import (
    ActivationResult,
    ChildConfig,
    EmergencyContact,
    PetConfig,
    PrivacySetting,
    PrivacySettings,
    ScanRecord,
    Tag,
    TagDomain,
    TagStatus,
    UnknownConfig,
    UpdateResult,
    VehicleConfig,
)
from pycarcard.state.capability import Capability
from pycarcard.state.store import StoreState

__all__ = [
    "__version__",
    "ActivationResult",
    "Capability",
    "CarCardAuthenticationError",
    "CarCardClient",
    "CarCardConfig",
    "CarCardConfigError",
    "CarCardEndpointNotSupportedError",
    "CarCardError",
    "CarCardTransportError",
    "ChildConfig",
    "EmergencyContact",
    "MalformedTagError",
    "PetConfig",
    "PrivacySetting",
    "PrivacySettings",
    "ScanRecord",
    "StoreState",
    "Tag",
    "TagDomain",
    "TagStatus",
    "UnknownConfig",
    "UpdateResult",
    "VehicleConfig",
]
