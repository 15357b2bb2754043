from .auth import AuthProvider, AuthTokens
from .conflict import ConflictItem, ConflictSet, ConflictType
from .device import DeviceMetadata
from .snapshot import SyncSnapshot
from .tab import TabCreateParams, TabMetadata, TabRecord, TabState
from .validation import ValidationResult

__all__ = [
    "AuthProvider",
    "AuthTokens",
    "ConflictItem",
    "ConflictSet",
    "ConflictType",
    "DeviceMetadata",
    "SyncSnapshot",
    "TabCreateParams",
    "TabMetadata",
    "TabRecord",
    "TabState",
    "ValidationResult",
]
