"""Identifier generation for tab records, sync snapshots and devices.

Uniqueness relies on a millisecond timestamp plus a random base-36 suffix.
Collisions are not checked for.
"""

from __future__ import annotations

import secrets
import string

from tabsync.core.time_utils import now_ms

_ALPHABET = string.digits + string.ascii_lowercase


def random_suffix(length: int) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_tab_id(source_tab_id: object, timestamp: int | None = None) -> str:
    """``tab_<sourceHandleId>_<timestamp>_<6 random>``; new on every call."""
    ts = now_ms() if timestamp is None else timestamp
    return f"tab_{source_tab_id}_{ts}_{random_suffix(6)}"


def generate_sync_id(timestamp: int | None = None) -> str:
    """``sync_<timestamp>_<8 random>``."""
    ts = now_ms() if timestamp is None else timestamp
    return f"sync_{ts}_{random_suffix(8)}"


def generate_device_id(platform_code: str, timestamp: int | None = None) -> str:
    """``device_<platform>_<timestamp>_<9 random>``."""
    ts = now_ms() if timestamp is None else timestamp
    return f"device_{platform_code}_{ts}_{random_suffix(9)}"
