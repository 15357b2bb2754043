from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Immutable value whose JSON form uses camelCase keys.

    Unknown keys are kept so a value parsed from the wire dumps back to the
    exact object it came from; checksums depend on that.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="allow",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

    @classmethod
    def from_wire(cls, data: Any) -> Any:
        if isinstance(data, cls):
            return data
        return cls.model_validate(data)


def as_wire(value: Any) -> Any:
    """Convert models (recursively inside lists) to their wire dicts; leave other values alone."""
    if isinstance(value, WireModel):
        return value.to_wire()
    if isinstance(value, list | tuple):
        return [as_wire(item) for item in value]
    return value
