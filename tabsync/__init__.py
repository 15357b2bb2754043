"""Tab sync data layer: tab records, snapshots, validation and conflict detection."""

from __future__ import annotations

from tabsync.config import AppConfig, SyncConfig, load_config
from tabsync.domain.exceptions.domain_exceptions import (
    BatchSerializationError,
    ChecksumMismatchError,
    DeserializationError,
    ErrorCode,
    ErrorKind,
    InvalidSyncDataError,
    InvalidTabDataError,
    InvalidTabsDataError,
    TabSerializationError,
    TabSyncError,
    VersionIncompatibleError,
)
from tabsync.domain.models import (
    AuthProvider,
    AuthTokens,
    ConflictItem,
    ConflictSet,
    ConflictType,
    DeviceMetadata,
    SyncSnapshot,
    TabCreateParams,
    TabMetadata,
    TabRecord,
    TabState,
    ValidationResult,
)
from tabsync.domain.services.conflict_detector import ConflictDetector
from tabsync.domain.services.device_info import build_device_metadata
from tabsync.domain.services.schema_validator import (
    validate_auth_tokens,
    validate_conflict_item,
    validate_conflict_set,
    validate_device_metadata,
    validate_sync_snapshot,
    validate_tab_array,
    validate_tab_record,
)
from tabsync.domain.services.sync_envelope import SnapshotAcceptance, SyncEnvelopeBuilder
from tabsync.domain.services.tab_serializer import (
    BatchSerializationResult,
    SerializationFailure,
    TabSerializer,
)

__version__ = "1.0.0"

__all__ = [
    "AppConfig",
    "AuthProvider",
    "AuthTokens",
    "BatchSerializationError",
    "BatchSerializationResult",
    "ChecksumMismatchError",
    "ConflictDetector",
    "ConflictItem",
    "ConflictSet",
    "ConflictType",
    "DeserializationError",
    "DeviceMetadata",
    "ErrorCode",
    "ErrorKind",
    "InvalidSyncDataError",
    "InvalidTabDataError",
    "InvalidTabsDataError",
    "SerializationFailure",
    "SnapshotAcceptance",
    "SyncConfig",
    "SyncEnvelopeBuilder",
    "SyncSnapshot",
    "TabCreateParams",
    "TabMetadata",
    "TabRecord",
    "TabSerializationError",
    "TabSerializer",
    "TabState",
    "TabSyncError",
    "ValidationResult",
    "VersionIncompatibleError",
    "__version__",
    "build_device_metadata",
    "load_config",
    "validate_auth_tokens",
    "validate_conflict_item",
    "validate_conflict_set",
    "validate_device_metadata",
    "validate_sync_snapshot",
    "validate_tab_array",
    "validate_tab_record",
]
