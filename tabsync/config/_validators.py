from __future__ import annotations

import hashlib
import re
from typing import Any

_SEMVER_PATTERN = re.compile(r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")


def validate_semver(value: str) -> str:
    """Validate a MAJOR.MINOR.PATCH version string."""
    if not value:
        msg = "Version cannot be empty"
        raise ValueError(msg)
    version = value.strip()
    if not _SEMVER_PATTERN.match(version):
        msg = f"Version must look like MAJOR.MINOR.PATCH, got: {value}"
        raise ValueError(msg)
    return version


def validate_hash_algorithm(name: str) -> str:
    algorithm = (name or "").strip().lower()
    if not algorithm:
        msg = "Checksum algorithm cannot be empty"
        raise ValueError(msg)
    if algorithm not in hashlib.algorithms_available:
        msg = f"Unsupported checksum algorithm: {name}"
        raise ValueError(msg)
    # Variable-length digests need an explicit length and cannot be used here
    if algorithm.startswith("shake_"):
        msg = f"Checksum algorithm '{name}' requires a digest length"
        raise ValueError(msg)
    return algorithm


def _parse_param_names(value: Any) -> tuple[str, ...]:
    if value in (None, ""):
        return ()
    values = value if isinstance(value, list | tuple | set | frozenset) else str(value).split(",")

    names: list[str] = []
    for piece in values:
        piece = str(piece).strip().lower()
        if not piece or piece in names:
            continue
        names.append(piece)
    return tuple(names)
