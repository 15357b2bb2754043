from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from ._base import WireModel
from .tab import TabRecord


class ConflictType(str, Enum):
    DUPLICATE = "duplicate"
    MODIFIED = "modified"
    DELETED = "deleted"
    STRUCTURAL = "structural"


class ConflictItem(WireModel):
    type: ConflictType
    reason: str
    severity: int = Field(ge=1, le=3)
    local_tab: TabRecord | None = None
    remote_tab: TabRecord | None = None
    subtype: str | None = None
    details: dict[str, Any] | None = None


class ConflictSet(WireModel):
    """Detected conflicts between two tab sets.

    ``resolution_strategy`` is a label for whoever resolves them; nothing in
    this package acts on it.
    """

    local_tabs: list[TabRecord] = Field(default_factory=list)
    remote_tabs: list[TabRecord] = Field(default_factory=list)
    conflicts: list[ConflictItem] = Field(default_factory=list)
    timestamp: int
    resolution_strategy: str = "manual"

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def by_type(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for conflict in self.conflicts:
            counts[conflict.type.value] = counts.get(conflict.type.value, 0) + 1
        return counts

    def by_severity(self) -> dict[int, int]:
        counts: dict[int, int] = {}
        for conflict in self.conflicts:
            counts[conflict.severity] = counts.get(conflict.severity, 0) + 1
        return counts
