from __future__ import annotations

from ._base import WireModel


class DeviceMetadata(WireModel):
    """Describes the device that produced a snapshot.

    Snapshot metadata extends this with ``tabCount``, ``syncId`` and any
    caller-supplied keys.
    """

    device_id: str
    device_name: str
    browser_name: str
    browser_version: str
    platform: str
    last_seen: int
    tab_count: int | None = None
    sync_id: str | None = None
