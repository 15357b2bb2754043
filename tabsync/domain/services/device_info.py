"""Device metadata construction.

The device id is created once per device by the host (see
``new_device_id``) and persisted there; this module never looks it up.
"""

from __future__ import annotations

from tabsync.core import user_agent as ua
from tabsync.core.ids import generate_device_id
from tabsync.core.logging_utils import get_logger
from tabsync.core.time_utils import now_ms
from tabsync.domain.models.device import DeviceMetadata
from tabsync.domain.services.schema_validator import validate_device_metadata

logger = get_logger(__name__)


def new_device_id(platform: str) -> str:
    return generate_device_id(ua.platform_code(platform))


def default_device_name(user_agent: str, platform: str) -> str:
    return f"{ua.browser_name(user_agent)} on {ua.platform_name(platform)}"


def build_device_metadata(
    device_id: str,
    user_agent: str,
    platform: str,
    device_name: str | None = None,
    now: int | None = None,
) -> DeviceMetadata:
    """Describe this device for snapshot metadata.

    Invalid results are logged rather than raised; the envelope validates the
    whole snapshot before emitting it anyway.
    """
    name = (device_name or "").strip() or default_device_name(user_agent, platform)
    metadata = DeviceMetadata(
        device_id=device_id,
        device_name=name,
        browser_name=ua.browser_name(user_agent),
        browser_version=ua.browser_version(user_agent),
        platform=platform or "unknown",
        last_seen=now_ms() if now is None else now,
    )

    validation = validate_device_metadata(metadata)
    if not validation.is_valid:
        logger.warning(
            "device_metadata_invalid",
            extra={"device_id": device_id, "errors": validation.errors},
        )
    return metadata


def refresh_last_seen(metadata: DeviceMetadata, now: int | None = None) -> DeviceMetadata:
    """Copy of ``metadata`` stamped with the current time."""
    return metadata.model_copy(update={"last_seen": now_ms() if now is None else now})
