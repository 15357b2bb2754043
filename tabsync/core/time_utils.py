from __future__ import annotations

import time


def now_ms() -> int:
    """Milliseconds since the epoch, the unit used for every wire timestamp."""
    return time.time_ns() // 1_000_000
