from __future__ import annotations

from ._validators import validate_hash_algorithm, validate_semver
from .runtime import RuntimeConfig
from .settings import AppConfig, Settings, load_config
from .sync import DEFAULT_TRACKING_PARAMS, SyncConfig

__all__ = [
    "DEFAULT_TRACKING_PARAMS",
    "AppConfig",
    "RuntimeConfig",
    "Settings",
    "SyncConfig",
    "load_config",
    "validate_hash_algorithm",
    "validate_semver",
]
