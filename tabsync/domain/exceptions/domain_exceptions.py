"""Domain-specific exceptions.

Every error raised by the sync data layer carries a stable machine-readable
``code`` and belongs to one ``ErrorKind``. Callers branch on the kind; the
code identifies the exact failure.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Categories of errors for caller handling."""

    STRUCTURAL_VALIDATION = "STRUCTURAL_VALIDATION"
    REPAIRABLE_DEFECT = "REPAIRABLE_DEFECT"
    INTEGRITY_FAILURE = "INTEGRITY_FAILURE"
    VERSION_INCOMPATIBLE = "VERSION_INCOMPATIBLE"
    BATCH_PARTIAL_FAILURE = "BATCH_PARTIAL_FAILURE"


class ErrorCode(str, Enum):
    """Stable error codes."""

    INVALID_TAB_DATA = "INVALID_TAB_DATA"
    INVALID_TABS_DATA = "INVALID_TABS_DATA"
    INVALID_SYNC_DATA = "INVALID_SYNC_DATA"
    TAB_SERIALIZATION_ERROR = "TAB_SERIALIZATION_ERROR"
    CHECKSUM_MISMATCH = "CHECKSUM_MISMATCH"
    VERSION_INCOMPATIBLE = "VERSION_INCOMPATIBLE"
    BATCH_SERIALIZATION_ERROR = "BATCH_SERIALIZATION_ERROR"
    DESERIALIZATION_ERROR = "DESERIALIZATION_ERROR"


_ERROR_KIND_MAP: dict[ErrorCode, ErrorKind] = {
    ErrorCode.INVALID_TAB_DATA: ErrorKind.STRUCTURAL_VALIDATION,
    ErrorCode.INVALID_TABS_DATA: ErrorKind.STRUCTURAL_VALIDATION,
    ErrorCode.INVALID_SYNC_DATA: ErrorKind.STRUCTURAL_VALIDATION,
    ErrorCode.DESERIALIZATION_ERROR: ErrorKind.STRUCTURAL_VALIDATION,
    ErrorCode.TAB_SERIALIZATION_ERROR: ErrorKind.REPAIRABLE_DEFECT,
    ErrorCode.CHECKSUM_MISMATCH: ErrorKind.INTEGRITY_FAILURE,
    ErrorCode.VERSION_INCOMPATIBLE: ErrorKind.VERSION_INCOMPATIBLE,
    ErrorCode.BATCH_SERIALIZATION_ERROR: ErrorKind.BATCH_PARTIAL_FAILURE,
}

# Nothing in this layer is retried automatically; the flag tells a caller
# whether trying again with the same input could ever succeed.
_RETRYABLE_CODES: set[ErrorCode] = set()


def error_kind_for(code: ErrorCode) -> ErrorKind:
    return _ERROR_KIND_MAP[code]


class TabSyncError(Exception):
    """Base exception for all tab sync data layer errors."""

    default_code: ErrorCode = ErrorCode.INVALID_SYNC_DATA

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error message.
            code: Stable error code; defaults to the class's code.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.kind = error_kind_for(self.code)
        self.retryable = self.code in _RETRYABLE_CODES
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class InvalidTabDataError(TabSyncError):
    """Raised when a tab record fails validation before deserialization."""

    default_code = ErrorCode.INVALID_TAB_DATA


class InvalidTabsDataError(TabSyncError):
    """Raised when an array of tab records fails validation."""

    default_code = ErrorCode.INVALID_TABS_DATA


class InvalidSyncDataError(TabSyncError):
    """Raised when a snapshot is structurally invalid."""

    default_code = ErrorCode.INVALID_SYNC_DATA


class TabSerializationError(TabSyncError):
    """Raised when a live tab cannot be turned into a valid record, even after repair."""

    default_code = ErrorCode.TAB_SERIALIZATION_ERROR


class DeserializationError(TabSyncError):
    """Raised when a batch of records cannot be turned into creation parameters."""

    default_code = ErrorCode.DESERIALIZATION_ERROR


class ChecksumMismatchError(TabSyncError):
    """Raised when a snapshot's checksum does not match its content."""

    default_code = ErrorCode.CHECKSUM_MISMATCH


class VersionIncompatibleError(TabSyncError):
    """Raised when a snapshot's major wire version differs from ours."""

    default_code = ErrorCode.VERSION_INCOMPATIBLE


class BatchSerializationError(TabSyncError):
    """Raised when batch serialization fails as a whole."""

    default_code = ErrorCode.BATCH_SERIALIZATION_ERROR
