"""Tab record models.

A ``TabRecord`` is a snapshot of one browser tab at serialization time. It
never holds a reference to the live tab it came from.
"""

from __future__ import annotations

from pydantic import Field

from ._base import WireModel


class TabState(WireModel):
    loading: bool = False
    complete: bool = False
    audible: bool = False
    muted: bool = False
    incognito: bool = False


class TabMetadata(WireModel):
    """Derived data attached by the serializer."""

    serialized_at: int
    serializer_version: str
    domain: str
    protocol: str
    tab_state: TabState = Field(default_factory=TabState)


class TabRecord(WireModel):
    id: str
    url: str
    title: str
    favicon: str | None = None
    window_id: int
    index: int
    timestamp: int
    device_id: str
    pinned: bool | None = None
    active: bool | None = None
    metadata: TabMetadata | None = None


class TabCreateParams(WireModel):
    """Instructions for the tab-creation collaborator.

    Dumps to ``{url, active, pinned, windowId?, index?}``.
    """

    url: str
    active: bool = False
    pinned: bool = False
    window_id: int | None = None
    index: int | None = None
