from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ._validators import _parse_param_names, validate_hash_algorithm, validate_semver

logger = logging.getLogger(__name__)

DEFAULT_TRACKING_PARAMS: tuple[str, ...] = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "fbclid",
    "gclid",
    "msclkid",
    "_ga",
    "mc_eid",
)


class SyncConfig(BaseModel):
    """Tab serialization and snapshot envelope configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    wire_version: str = Field(default="1.0.0", validation_alias="TABSYNC_WIRE_VERSION")
    batch_size: int = Field(default=10, validation_alias="TABSYNC_BATCH_SIZE")
    title_max_length: int = Field(default=200, validation_alias="TABSYNC_TITLE_MAX_LENGTH")
    default_title: str = Field(default="Untitled", validation_alias="TABSYNC_DEFAULT_TITLE")
    checksum_algorithm: str = Field(
        default="sha256", validation_alias="TABSYNC_CHECKSUM_ALGORITHM"
    )
    tracking_params: tuple[str, ...] = Field(
        default=DEFAULT_TRACKING_PARAMS, validation_alias="TABSYNC_TRACKING_PARAMS"
    )

    @field_validator("wire_version", mode="before")
    @classmethod
    def _validate_wire_version(cls, value: Any) -> str:
        return validate_semver(str(value if value not in (None, "") else "1.0.0"))

    @field_validator("batch_size", mode="before")
    @classmethod
    def _validate_batch_size(cls, value: Any) -> int:
        try:
            parsed = int(str(value if value not in (None, "") else 10))
        except ValueError as exc:
            msg = "Batch size must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 1 or parsed > 100:
            msg = "Batch size must be between 1 and 100"
            raise ValueError(msg)
        return parsed

    @field_validator("title_max_length", mode="before")
    @classmethod
    def _validate_title_length(cls, value: Any, info: ValidationInfo) -> int:
        default = cls.model_fields[info.field_name].default
        try:
            parsed = int(str(value if value not in (None, "") else default))
        except ValueError as exc:
            msg = "Title max length must be a valid integer"
            raise ValueError(msg) from exc
        if parsed <= 0:
            msg = "Title max length must be positive"
            raise ValueError(msg)
        return parsed

    @field_validator("default_title", mode="before")
    @classmethod
    def _validate_default_title(cls, value: Any) -> str:
        title = str(value or "").strip()
        if not title:
            msg = "Default title cannot be empty"
            raise ValueError(msg)
        return title

    @field_validator("checksum_algorithm", mode="before")
    @classmethod
    def _validate_checksum_algorithm(cls, value: Any) -> str:
        return validate_hash_algorithm(str(value or "sha256"))

    @field_validator("tracking_params", mode="before")
    @classmethod
    def _validate_tracking_params(cls, value: Any) -> tuple[str, ...]:
        params = _parse_param_names(value)
        if not params:
            logger.warning("tracking_params_empty_url_sanitization_disabled")
        return params

    @property
    def major_version(self) -> str:
        return self.wire_version.split(".", 1)[0]
