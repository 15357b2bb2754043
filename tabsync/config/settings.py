from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .runtime import RuntimeConfig
from .sync import SyncConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    runtime: RuntimeConfig
    sync: SyncConfig


class Settings(BaseSettings):
    """Settings loaded automatically from environment variables.

    Nested models are populated by matching validation_alias on each field.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)

    @model_validator(mode="before")
    @classmethod
    def _build_nested_from_env(cls, data: Any) -> Any:
        """Fill the runtime and sync sections from their flat env names.

        Every section field carries a plain-string ``validation_alias`` (e.g.
        ``TABSYNC_BATCH_SIZE``); constructor arguments win over the environment.
        """
        if not isinstance(data, dict):
            return data

        result = dict(data)
        source = {**os.environ, **data}
        for section in ("runtime", "sync"):
            model = cls.model_fields[section].annotation
            from_env = {
                name: source[field.validation_alias]
                for name, field in model.model_fields.items()
                if isinstance(field.validation_alias, str) and field.validation_alias in source
            }
            explicit = result.get(section)
            if isinstance(explicit, dict):
                result[section] = {**from_env, **explicit}
            elif section not in result and from_env:
                result[section] = from_env
        return result

    def as_app_config(self) -> AppConfig:
        return AppConfig(runtime=self.runtime, sync=self.sync)


def load_config(**overrides: Any) -> AppConfig:
    """Load configuration from environment variables and an optional .env file.

    Args:
        **overrides: Section overrides, e.g. ``sync={"batch_size": 5}``.

    Returns:
        Immutable AppConfig instance.

    Raises:
        RuntimeError: If configuration validation fails.
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        msg = f"Configuration validation failed: {exc}"
        raise RuntimeError(msg) from exc

    logger.debug(
        "config_loaded",
        extra={
            "wire_version": settings.sync.wire_version,
            "batch_size": settings.sync.batch_size,
            "checksum_algorithm": settings.sync.checksum_algorithm,
        },
    )
    return settings.as_app_config()
