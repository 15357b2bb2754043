"""Snapshot envelope: assembly of outbound snapshots and the inbound trust gate.

Outbound snapshots are built from locally produced tab records, checksummed
and validated before they leave. Inbound snapshots pass three gates in order
(structure, checksum, version) and are never repaired: a snapshot that fails
any gate is reported back with its errors and must be discarded.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from tabsync.core.checksum import compute_checksum
from tabsync.core.ids import generate_sync_id
from tabsync.core.logging_utils import get_logger
from tabsync.core.time_utils import now_ms
from tabsync.domain.exceptions.domain_exceptions import (
    ChecksumMismatchError,
    ErrorCode,
    InvalidSyncDataError,
    TabSyncError,
    VersionIncompatibleError,
)
from tabsync.domain.models._base import WireModel, as_wire
from tabsync.domain.models.snapshot import SyncSnapshot
from tabsync.domain.services.device_info import refresh_last_seen
from tabsync.domain.services.schema_validator import validate_sync_snapshot

if TYPE_CHECKING:
    from tabsync.config import SyncConfig
    from tabsync.domain.models.device import DeviceMetadata
    from tabsync.domain.models.tab import TabRecord

logger = get_logger(__name__)

_ERRORS_BY_CODE: dict[ErrorCode, type[TabSyncError]] = {
    ErrorCode.INVALID_SYNC_DATA: InvalidSyncDataError,
    ErrorCode.CHECKSUM_MISMATCH: ChecksumMismatchError,
    ErrorCode.VERSION_INCOMPATIBLE: VersionIncompatibleError,
}


@dataclass
class SnapshotAcceptance:
    """Result of passing an inbound snapshot through the trust gate.

    On success ``snapshot`` is the received object, unchanged.
    """

    accepted: bool
    error_code: ErrorCode | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    snapshot: dict[str, Any] | None = None

    def raise_for_status(self) -> dict[str, Any]:
        """Return the accepted snapshot or raise the matching taxonomy error."""
        if self.accepted and self.snapshot is not None:
            return self.snapshot
        code = self.error_code or ErrorCode.INVALID_SYNC_DATA
        error_cls = _ERRORS_BY_CODE.get(code, InvalidSyncDataError)
        message = "; ".join(self.errors) or "Snapshot rejected"
        raise error_cls(message, details={"errors": list(self.errors)})

    def to_model(self) -> SyncSnapshot:
        """Typed view of the accepted snapshot."""
        return SyncSnapshot.from_wire(self.raise_for_status())


class SyncEnvelopeBuilder:
    """Builds outbound snapshots and gates inbound ones."""

    def __init__(self, cfg: SyncConfig, device: DeviceMetadata) -> None:
        self.cfg = cfg
        self.device = device

    @property
    def version(self) -> str:
        return self.cfg.wire_version

    def compute_checksum(self, tabs: Iterable[Any], metadata: Any) -> str:
        payload = {"tabs": [as_wire(tab) for tab in tabs], "metadata": as_wire(metadata)}
        return compute_checksum(payload, self.cfg.checksum_algorithm)

    def is_version_compatible(self, version: Any) -> bool:
        """Same major component as ours; minor and patch drift are fine."""
        if not isinstance(version, str) or not version:
            return False
        major = version.split(".", 1)[0]
        return major.isascii() and major.isdigit() and int(major) == int(self.cfg.major_version)

    def build_snapshot(
        self,
        tab_records: Iterable[TabRecord | Mapping[str, Any]],
        extra_metadata: Mapping[str, Any] | None = None,
    ) -> SyncSnapshot:
        """Assemble a checksummed snapshot from locally produced records.

        Raises:
            InvalidSyncDataError: If the assembled snapshot does not validate.
        """
        tabs = [as_wire(tab) for tab in tab_records]
        timestamp = now_ms()
        device = refresh_last_seen(self.device, timestamp)

        metadata: dict[str, Any] = {
            **device.to_wire(),
            **dict(extra_metadata or {}),
            "tabCount": len(tabs),
            "syncId": generate_sync_id(timestamp),
        }
        raw = {
            "version": self.version,
            "deviceId": device.device_id,
            "timestamp": timestamp,
            "tabs": tabs,
            "metadata": metadata,
        }

        validation = validate_sync_snapshot(raw)
        if not validation.is_valid:
            logger.error(
                "sync_snapshot_invalid",
                extra={"device_id": device.device_id, "errors": validation.errors},
            )
            raise InvalidSyncDataError(
                "Invalid sync data created", details={"errors": validation.errors}
            )

        try:
            snapshot = SyncSnapshot.model_validate(raw)
            # Hash what will actually be transmitted, after model parsing
            checksum = compute_checksum(snapshot.checksum_payload(), self.cfg.checksum_algorithm)
        except (ValidationError, ValueError) as exc:
            logger.exception("sync_snapshot_build_failed", extra={"device_id": device.device_id})
            raise InvalidSyncDataError(
                "Invalid sync data created", details={"errors": [str(exc)]}
            ) from exc

        snapshot = snapshot.model_copy(update={"checksum": checksum})
        logger.info(
            "sync_snapshot_created",
            extra={
                "device_id": device.device_id,
                "sync_id": metadata["syncId"],
                "tab_count": len(tabs),
                "checksum": checksum[:8],
                "version": self.version,
            },
        )
        return snapshot

    def accept_snapshot(self, snapshot: Any) -> SnapshotAcceptance:
        """Run an inbound snapshot through the structure, checksum and version gates."""
        raw = snapshot.to_wire() if isinstance(snapshot, WireModel) else snapshot

        validation = validate_sync_snapshot(raw)
        if not validation.is_valid:
            logger.warning("sync_snapshot_rejected_structure", extra={"errors": validation.errors})
            return SnapshotAcceptance(
                accepted=False,
                error_code=ErrorCode.INVALID_SYNC_DATA,
                errors=list(validation.errors),
                warnings=list(validation.warnings),
            )

        if raw.get("checksum") is not None:
            expected = raw["checksum"]
            try:
                actual = self.compute_checksum(raw["tabs"], raw["metadata"])
            except ValueError as exc:
                actual = None
                logger.warning("sync_snapshot_checksum_uncomputable", extra={"error": str(exc)})
            if not isinstance(expected, str) or actual != expected:
                logger.warning(
                    "sync_snapshot_rejected_checksum",
                    extra={
                        "device_id": raw.get("deviceId"),
                        "checksum": str(expected)[:8],
                        "error_code": ErrorCode.CHECKSUM_MISMATCH.value,
                    },
                )
                return SnapshotAcceptance(
                    accepted=False,
                    error_code=ErrorCode.CHECKSUM_MISMATCH,
                    errors=["Checksum validation failed - data may be corrupted"],
                    warnings=list(validation.warnings),
                )

        version = raw["version"]
        if not self.is_version_compatible(version):
            logger.warning(
                "sync_snapshot_rejected_version",
                extra={"version": version, "local_version": self.version},
            )
            return SnapshotAcceptance(
                accepted=False,
                error_code=ErrorCode.VERSION_INCOMPATIBLE,
                errors=[
                    f"Incompatible sync data version: {version} "
                    f"(expected major version {self.cfg.major_version})"
                ],
                warnings=list(validation.warnings),
            )

        logger.info(
            "sync_snapshot_accepted",
            extra={
                "device_id": raw.get("deviceId"),
                "tab_count": len(raw["tabs"]),
                "version": version,
            },
        )
        return SnapshotAcceptance(accepted=True, warnings=list(validation.warnings), snapshot=raw)
