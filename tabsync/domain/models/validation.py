"""Validation result value object."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ValidationResult:
    """Outcome of a schema check.

    ``errors`` are hard failures that make the value unusable; ``warnings``
    are informational and never affect ``is_valid``.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def merge_child(self, prefix: str, child: "ValidationResult") -> None:
        """Fold a nested result into this one as a single prefixed error.

        Child warnings are not propagated; they describe the nested value only.
        """
        if not child.is_valid:
            self.errors.append(f"{prefix}: {', '.join(child.errors)}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }

    @classmethod
    def failure(cls, message: str) -> "ValidationResult":
        return cls(errors=[message])
