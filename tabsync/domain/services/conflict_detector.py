"""Conflict detection between a local and a remote tab set.

Detection only. Tab-level and structural passes compare the two tab lists.
When the remote snapshot envelope is supplied, timestamp and device passes
also run. The returned ``ConflictSet`` describes what differs and how much it
matters; the resolution strategy it carries is a label for whoever resolves it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from tabsync.core.logging_utils import get_logger
from tabsync.core.time_utils import now_ms
from tabsync.core.user_agent import platform_family
from tabsync.domain.exceptions.domain_exceptions import (
    InvalidSyncDataError,
    InvalidTabsDataError,
)
from tabsync.domain.models.conflict import ConflictItem, ConflictSet, ConflictType
from tabsync.domain.models.device import DeviceMetadata
from tabsync.domain.models.snapshot import SyncSnapshot
from tabsync.domain.models.tab import TabRecord
from tabsync.domain.services.schema_validator import validate_sync_snapshot, validate_tab_array

logger = get_logger(__name__)

FIELD_WEIGHTS: dict[str, int] = {
    "title": 2,
    "pinned": 2,
    "window_id": 3,
    "index": 1,
}

_WIRE_NAMES = {"title": "title", "pinned": "pinned", "window_id": "windowId", "index": "index"}

CONCURRENT_WINDOW_MS = 5 * 60 * 1000
STALE_AFTER_MS = 7 * 24 * 60 * 60 * 1000


def modification_severity(fields: Iterable[str]) -> int:
    """Severity for a set of differing fields."""
    weights = [FIELD_WEIGHTS.get(name, 1) for name in fields]
    if not weights:
        return 1
    if sum(1 for weight in weights if weight >= 2) > 1:
        return 3
    if max(weights) >= 2:
        return 2
    return 1


def _field_value(tab: TabRecord, name: str) -> Any:
    value = getattr(tab, name)
    return bool(value) if name == "pinned" else value


def _by_url(tabs: list[TabRecord]) -> dict[str, TabRecord]:
    mapping: dict[str, TabRecord] = {}
    for tab in tabs:
        mapping.setdefault(tab.url, tab)
    return mapping


def _by_window(tabs: list[TabRecord]) -> dict[int, list[TabRecord]]:
    windows: dict[int, list[TabRecord]] = {}
    for tab in tabs:
        windows.setdefault(tab.window_id, []).append(tab)
    return windows


class ConflictDetector:
    """Compares two tab sets and reports duplicate, modified, deleted and structural conflicts.

    ``device`` is the local device; with it set, a remote snapshot from another
    platform family is reported.
    """

    def __init__(
        self, device_id: str | None = None, device: DeviceMetadata | None = None
    ) -> None:
        self.device = device
        self.device_id = device_id or (device.device_id if device else None)

    def detect(
        self,
        local_tabs: Iterable[TabRecord | Mapping[str, Any]],
        remote_tabs: Iterable[TabRecord | Mapping[str, Any]],
        *,
        last_sync_time: int | None = None,
        remote_snapshot: SyncSnapshot | Mapping[str, Any] | None = None,
        resolution_strategy: str = "manual",
    ) -> ConflictSet:
        """Detect conflicts between ``local_tabs`` and ``remote_tabs``.

        Deletions and concurrent changes can only be told apart from fresh
        tabs with ``last_sync_time``; without it neither is reported.
        ``remote_snapshot`` is the envelope the remote tabs arrived in; its
        timestamp, device id and device metadata feed the timestamp and
        device passes.

        Raises:
            InvalidTabsDataError: If either side is not a valid tab array.
            InvalidSyncDataError: If ``remote_snapshot`` is not a valid snapshot.
        """
        local = self._parse("local", local_tabs)
        remote = self._parse("remote", remote_tabs)
        snapshot = self._parse_snapshot(remote_snapshot) if remote_snapshot is not None else None
        now = now_ms()

        conflicts: list[ConflictItem] = []
        if snapshot is not None and last_sync_time is not None:
            conflicts.extend(
                self._timestamp_conflicts(local, remote, snapshot, last_sync_time, now)
            )
        conflicts.extend(self._tab_conflicts(local, remote))
        if last_sync_time is not None:
            conflicts.extend(self._deleted_conflicts(local, remote, last_sync_time))
        conflicts.extend(self._structural_conflicts(local, remote))
        if snapshot is not None:
            conflicts.extend(self._device_conflicts(local, snapshot))
        conflicts.sort(key=lambda item: (-item.severity, item.type.value))

        conflict_set = ConflictSet(
            local_tabs=local,
            remote_tabs=remote,
            conflicts=conflicts,
            timestamp=now,
            resolution_strategy=resolution_strategy,
        )
        logger.info(
            "conflict_detection_completed",
            extra={
                "device_id": self.device_id,
                "total_conflicts": len(conflicts),
                "by_type": conflict_set.by_type(),
                "by_severity": conflict_set.by_severity(),
            },
        )
        return conflict_set

    def _parse(
        self, side: str, tabs: Iterable[TabRecord | Mapping[str, Any]]
    ) -> list[TabRecord]:
        validation = validate_tab_array(tabs)
        if not validation.is_valid:
            raise InvalidTabsDataError(
                f"Invalid {side} tabs for conflict detection",
                details={"side": side, "errors": validation.errors},
            )
        try:
            return [
                tab if isinstance(tab, TabRecord) else TabRecord.model_validate(tab)
                for tab in tabs
            ]
        except ValidationError as exc:
            raise InvalidTabsDataError(
                f"Invalid {side} tabs for conflict detection",
                details={"side": side, "errors": [str(exc)]},
            ) from exc

    def _parse_snapshot(self, snapshot: SyncSnapshot | Mapping[str, Any]) -> SyncSnapshot:
        if isinstance(snapshot, SyncSnapshot):
            return snapshot
        validation = validate_sync_snapshot(snapshot)
        if not validation.is_valid:
            raise InvalidSyncDataError(
                "Invalid remote snapshot for conflict detection",
                details={"errors": validation.errors},
            )
        try:
            return SyncSnapshot.model_validate(snapshot)
        except ValidationError as exc:
            raise InvalidSyncDataError(
                "Invalid remote snapshot for conflict detection",
                details={"errors": [str(exc)]},
            ) from exc

    def _timestamp_conflicts(
        self,
        local: list[TabRecord],
        remote: list[TabRecord],
        snapshot: SyncSnapshot,
        last_sync_time: int,
        now: int,
    ) -> list[ConflictItem]:
        conflicts: list[ConflictItem] = []
        local_latest = max((tab.timestamp for tab in local), default=0)
        remote_latest = snapshot.timestamp

        if local_latest > last_sync_time and remote_latest > last_sync_time:
            gap = abs(local_latest - remote_latest)
            conflicts.append(
                ConflictItem(
                    type=ConflictType.MODIFIED,
                    subtype="concurrent_modification",
                    reason="Both local and remote tabs changed since last sync",
                    severity=3 if gap < CONCURRENT_WINDOW_MS else 2,
                    details={
                        "localTimestamp": local_latest,
                        "remoteTimestamp": remote_latest,
                        "lastSyncTime": last_sync_time,
                        "timeDifference": gap,
                        "localChanges": sum(1 for t in local if t.timestamp > last_sync_time),
                        "remoteChanges": sum(1 for t in remote if t.timestamp > last_sync_time),
                    },
                )
            )

        if now - local_latest > STALE_AFTER_MS and remote_latest > last_sync_time:
            conflicts.append(
                ConflictItem(
                    type=ConflictType.MODIFIED,
                    subtype="stale_local",
                    reason="Local tabs look stale compared to remote",
                    severity=2,
                    details={
                        "localAge": now - local_latest,
                        "remoteTimestamp": remote_latest,
                        "threshold": STALE_AFTER_MS,
                    },
                )
            )
        if now - remote_latest > STALE_AFTER_MS and local_latest > last_sync_time:
            conflicts.append(
                ConflictItem(
                    type=ConflictType.MODIFIED,
                    subtype="stale_remote",
                    reason="Remote tabs look stale compared to local",
                    severity=2,
                    details={
                        "remoteAge": now - remote_latest,
                        "localTimestamp": local_latest,
                        "threshold": STALE_AFTER_MS,
                    },
                )
            )
        return conflicts

    def _device_conflicts(
        self, local: list[TabRecord], snapshot: SyncSnapshot
    ) -> list[ConflictItem]:
        conflicts: list[ConflictItem] = []

        if self.device_id is not None and snapshot.device_id == self.device_id:
            conflicts.append(
                ConflictItem(
                    type=ConflictType.STRUCTURAL,
                    subtype="same_device_id",
                    reason="Remote snapshot carries this device's id",
                    severity=3,
                    details={
                        "deviceId": self.device_id,
                        "remoteTimestamp": snapshot.timestamp,
                        "localTimestamp": max((tab.timestamp for tab in local), default=None),
                    },
                )
            )

        if self.device is not None:
            local_platform = platform_family(self.device.platform)
            remote_platform = platform_family(snapshot.metadata.platform)
            if local_platform != remote_platform:
                conflicts.append(
                    ConflictItem(
                        type=ConflictType.STRUCTURAL,
                        subtype="platform_difference",
                        reason=f"Different platforms: {local_platform} vs {remote_platform}",
                        severity=1,
                        details={
                            "localPlatform": local_platform,
                            "remotePlatform": remote_platform,
                        },
                    )
                )
        return conflicts

    def _tab_conflicts(
        self, local: list[TabRecord], remote: list[TabRecord]
    ) -> list[ConflictItem]:
        conflicts: list[ConflictItem] = []
        remote_by_url = _by_url(remote)

        for url, local_tab in _by_url(local).items():
            remote_tab = remote_by_url.get(url)
            if remote_tab is None or remote_tab.device_id == local_tab.device_id:
                continue

            conflicts.append(
                ConflictItem(
                    type=ConflictType.DUPLICATE,
                    reason=f'Duplicate tab found: "{local_tab.title}"',
                    severity=1,
                    local_tab=local_tab,
                    remote_tab=remote_tab,
                    details={"devices": sorted({local_tab.device_id, remote_tab.device_id})},
                )
            )

            differing = [
                name
                for name in FIELD_WEIGHTS
                if _field_value(local_tab, name) != _field_value(remote_tab, name)
            ]
            if differing:
                conflicts.append(
                    ConflictItem(
                        type=ConflictType.MODIFIED,
                        reason=f'Tab "{local_tab.title}" has different metadata',
                        severity=modification_severity(differing),
                        local_tab=local_tab,
                        remote_tab=remote_tab,
                        details={
                            "conflictFields": [_WIRE_NAMES[name] for name in differing],
                            "differences": [
                                {
                                    "field": _WIRE_NAMES[name],
                                    "localValue": _field_value(local_tab, name),
                                    "remoteValue": _field_value(remote_tab, name),
                                }
                                for name in differing
                            ],
                        },
                    )
                )

        return conflicts

    def _deleted_conflicts(
        self, local: list[TabRecord], remote: list[TabRecord], last_sync_time: int
    ) -> list[ConflictItem]:
        conflicts: list[ConflictItem] = []
        local_by_url = _by_url(local)
        remote_by_url = _by_url(remote)

        for url, tab in local_by_url.items():
            if url not in remote_by_url and tab.timestamp <= last_sync_time:
                conflicts.append(
                    ConflictItem(
                        type=ConflictType.DELETED,
                        subtype="deleted_remotely",
                        reason=f'Tab "{tab.title}" was removed on the remote side since last sync',
                        severity=2,
                        local_tab=tab,
                    )
                )
        for url, tab in remote_by_url.items():
            if url not in local_by_url and tab.timestamp <= last_sync_time:
                conflicts.append(
                    ConflictItem(
                        type=ConflictType.DELETED,
                        subtype="deleted_locally",
                        reason=f'Tab "{tab.title}" was removed locally since last sync',
                        severity=2,
                        remote_tab=tab,
                    )
                )
        return conflicts

    def _structural_conflicts(
        self, local: list[TabRecord], remote: list[TabRecord]
    ) -> list[ConflictItem]:
        conflicts: list[ConflictItem] = []
        local_windows = _by_window(local)
        remote_windows = _by_window(remote)

        if len(local_windows) != len(remote_windows):
            conflicts.append(
                ConflictItem(
                    type=ConflictType.STRUCTURAL,
                    subtype="window_count",
                    reason="Different number of windows between local and remote",
                    severity=2,
                    details={
                        "localWindowCount": len(local_windows),
                        "remoteWindowCount": len(remote_windows),
                    },
                )
            )

        for window_id, local_window in local_windows.items():
            remote_window = remote_windows.get(window_id)
            if remote_window is None:
                continue
            local_order = [tab.url for tab in sorted(local_window, key=lambda t: t.index)]
            remote_order = [tab.url for tab in sorted(remote_window, key=lambda t: t.index)]
            if local_order != remote_order:
                conflicts.append(
                    ConflictItem(
                        type=ConflictType.STRUCTURAL,
                        subtype="tab_order",
                        reason=f"Tab order differs in window {window_id}",
                        severity=1,
                        details={
                            "windowId": window_id,
                            "localOrder": local_order,
                            "remoteOrder": remote_order,
                        },
                    )
                )

        remote_by_url = _by_url(remote)
        moved: list[dict[str, Any]] = []
        for url, local_tab in _by_url(local).items():
            remote_tab = remote_by_url.get(url)
            if remote_tab is None:
                continue
            if bool(local_tab.pinned) != bool(remote_tab.pinned):
                where = "locally" if local_tab.pinned else "remotely"
                conflicts.append(
                    ConflictItem(
                        type=ConflictType.STRUCTURAL,
                        subtype="pinned_status",
                        reason=f'Tab pinned {where} only: "{local_tab.title}"',
                        severity=2,
                        local_tab=local_tab,
                        remote_tab=remote_tab,
                    )
                )
            if local_tab.window_id != remote_tab.window_id:
                moved.append(
                    {
                        "url": url,
                        "localWindowId": local_tab.window_id,
                        "remoteWindowId": remote_tab.window_id,
                    }
                )

        if moved:
            conflicts.append(
                ConflictItem(
                    type=ConflictType.STRUCTURAL,
                    subtype="window_organization",
                    reason=f"{len(moved)} tabs moved between windows",
                    severity=1,
                    details={"movedTabs": moved},
                )
            )

        return conflicts
