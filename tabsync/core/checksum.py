from __future__ import annotations

import hashlib
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def canonical_json(payload: Any) -> str:
    """Serialize ``payload`` deterministically.

    Keys are sorted and separators are compact so two devices producing the
    same logical content always hash the same bytes, regardless of key order.
    """
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def compute_checksum(payload: Any, algorithm: str = "sha256") -> str:
    """Hex digest of the canonical JSON form of ``payload``.

    Raises:
        ValueError: If the payload cannot be serialized as strict JSON or the
            algorithm is unknown to hashlib.
    """
    try:
        data = canonical_json(payload).encode("utf-8")
    except (TypeError, ValueError) as e:
        msg = f"Payload is not JSON serializable: {e}"
        raise ValueError(msg) from e

    digest = hashlib.new(algorithm, data).hexdigest()
    logger.debug(
        "checksum_computed",
        extra={"algorithm": algorithm, "size_bytes": len(data), "checksum": digest[:8]},
    )
    return digest
