from __future__ import annotations

from pydantic import Field

from ._base import WireModel
from .device import DeviceMetadata
from .tab import TabRecord


class SyncSnapshot(WireModel):
    """Versioned, checksummed bundle of one device's tabs."""

    version: str
    device_id: str
    timestamp: int
    tabs: list[TabRecord] = Field(default_factory=list)
    metadata: DeviceMetadata
    checksum: str | None = None

    @property
    def major_version(self) -> str:
        return self.version.split(".", 1)[0]

    def checksum_payload(self) -> dict:
        """The exact ``{tabs, metadata}`` object the checksum covers."""
        wire = self.to_wire()
        return {"tabs": wire.get("tabs", []), "metadata": wire["metadata"]}
