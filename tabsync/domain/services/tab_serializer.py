"""Conversion between live browser tabs and tab records.

Live tab handles are whatever the browser's tab API returns: a mapping (the
tab JSON) or an object exposing the same names as attributes. The serializer
reads ``id``, ``url``, ``title``, ``windowId``, ``index``, ``favIconUrl``,
``pinned``, ``active``, ``status``, ``audible``, ``mutedInfo.muted`` and
``incognito`` and never keeps a reference to the handle.

Locally produced records that fail validation get exactly one repair pass
(``RepairState.RAW`` -> ``RepairState.REPAIRED``). A record that is still
invalid after repair is rejected with ``TabSerializationError``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from tabsync.core.ids import generate_tab_id
from tabsync.core.logging_utils import get_logger, truncate_log_content
from tabsync.core.time_utils import now_ms
from tabsync.core.url_utils import BLANK_URL, extract_domain, extract_protocol, sanitize_url
from tabsync.domain.exceptions.domain_exceptions import (
    BatchSerializationError,
    DeserializationError,
    InvalidTabDataError,
    InvalidTabsDataError,
    TabSerializationError,
    TabSyncError,
)
from tabsync.domain.models._base import as_wire
from tabsync.domain.models.tab import TabCreateParams, TabRecord
from tabsync.domain.services.schema_validator import validate_tab_array, validate_tab_record
from tabsync.domain.services.sync_envelope import SyncEnvelopeBuilder

if TYPE_CHECKING:
    from tabsync.config import SyncConfig
    from tabsync.domain.models.device import DeviceMetadata
    from tabsync.domain.models.snapshot import SyncSnapshot

logger = get_logger(__name__)


class RepairState(str, Enum):
    RAW = "raw"
    REPAIRED = "repaired"


@dataclass(frozen=True)
class SerializationFailure:
    """One tab that could not be serialized inside a batch."""

    index: int
    tab_id: Any
    url: Any
    code: str
    message: str


@dataclass
class BatchSerializationResult:
    records: list[TabRecord] = field(default_factory=list)
    failures: list[SerializationFailure] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)

    @property
    def total(self) -> int:
        return len(self.records) + len(self.failures)


def _handle_get(handle: Any, name: str, default: Any = None) -> Any:
    if isinstance(handle, Mapping):
        return handle.get(name, default)
    return getattr(handle, name, default)


def _peek(handle: Any, name: str) -> Any:
    """Read a field for logging or failure reports; a broken handle yields None."""
    try:
        return _handle_get(handle, name)
    except Exception:
        return None


def _error_field(message: str) -> str:
    """``"TabRecord.url must be ..."`` -> ``"url"``."""
    head = message.split(" ", 1)[0]
    return head.split(".", 1)[1] if "." in head else head


class TabSerializer:
    """Serializes live tabs into records and records back into creation parameters."""

    def __init__(
        self,
        cfg: SyncConfig,
        device: DeviceMetadata,
        envelope: SyncEnvelopeBuilder | None = None,
    ) -> None:
        self.cfg = cfg
        self.device = device
        self.device_id = device.device_id
        self.version = cfg.wire_version
        self.envelope = envelope or SyncEnvelopeBuilder(cfg, device)

    # -- outbound ---------------------------------------------------------

    async def serialize_tab(
        self,
        handle: Any,
        *,
        include_content: bool = False,
        include_history: bool = False,
        sanitize_url: bool = True,
    ) -> TabRecord:
        """Build a validated ``TabRecord`` from a live tab handle.

        ``include_history`` is accepted for forward compatibility and ignored.

        Raises:
            TabSerializationError: If the record is invalid even after repair.
        """
        source_id = _peek(handle, "id")
        try:
            record = self._build_record(handle, sanitize=sanitize_url)
            record, _ = self._validate_with_repair(record)
            record["metadata"] = self._build_metadata(handle, record)

            if include_content:
                content = await self.extract_tab_content(handle)
                if content is not None:
                    record["content"] = content

            return TabRecord.model_validate(record)
        except TabSyncError:
            logger.warning(
                "tab_serialization_failed",
                extra={
                    "tab_id": source_id,
                    "url": truncate_log_content(str(_peek(handle, "url"))),
                },
            )
            raise
        except Exception as exc:
            logger.exception("tab_serialization_crashed", extra={"tab_id": source_id})
            raise TabSerializationError(
                f"Failed to serialize tab: {exc}",
                details={"tab_id": source_id, "error": str(exc)},
            ) from exc

    async def serialize_tabs(
        self,
        handles: Iterable[Any],
        *,
        batch_size: int | None = None,
        continue_on_error: bool = True,
        include_content: bool = False,
        include_history: bool = False,
        sanitize_url: bool = True,
    ) -> BatchSerializationResult:
        """Serialize many tabs in fixed-size batches.

        Every batch runs to completion before the next one starts. With
        ``continue_on_error`` failed tabs are recorded in ``failures`` and left
        out of ``records``; without it the first failure (in input order) is
        raised once its batch has finished.
        """
        try:
            pending = list(handles)
        except TypeError as exc:
            raise BatchSerializationError(
                "Tab handles must be iterable", details={"error": str(exc)}
            ) from exc

        size = self.cfg.batch_size if batch_size is None else batch_size
        if size < 1:
            raise BatchSerializationError(
                "Batch size must be positive", details={"batch_size": size}
            )

        result = BatchSerializationResult()
        for start in range(0, len(pending), size):
            batch = pending[start : start + size]
            outcomes = await asyncio.gather(
                *(
                    self.serialize_tab(
                        handle,
                        include_content=include_content,
                        include_history=include_history,
                        sanitize_url=sanitize_url,
                    )
                    for handle in batch
                ),
                return_exceptions=True,
            )

            for offset, (handle, outcome) in enumerate(zip(batch, outcomes, strict=True)):
                if not isinstance(outcome, BaseException):
                    result.records.append(outcome)
                    continue

                if not isinstance(outcome, Exception):
                    raise outcome
                if isinstance(outcome, TabSyncError):
                    error = outcome
                else:
                    error = BatchSerializationError(
                        f"Unexpected serialization failure: {outcome}",
                        details={"index": start + offset, "error": str(outcome)},
                    )
                    error.__cause__ = outcome

                if not continue_on_error:
                    logger.error(
                        "tab_batch_aborted",
                        extra={"index": start + offset, "error_code": error.code.value},
                    )
                    raise error

                result.failures.append(
                    SerializationFailure(
                        index=start + offset,
                        tab_id=_peek(handle, "id"),
                        url=_peek(handle, "url"),
                        code=error.code.value,
                        message=error.message,
                    )
                )

        if result.failures:
            logger.warning(
                "tab_batch_partial_failure",
                extra={
                    "total": len(pending),
                    "successful": len(result.records),
                    "failed": len(result.failures),
                },
            )

        validation = validate_tab_array(result.records)
        result.warnings = [*validation.errors, *validation.warnings]
        if validation.warnings or not validation.is_valid:
            logger.info(
                "tab_batch_validation_issues",
                extra={"errors": validation.errors, "warnings": validation.warnings},
            )
        return result

    async def create_sync_snapshot(
        self,
        tab_records: Iterable[TabRecord | Mapping[str, Any]],
        extra_metadata: Mapping[str, Any] | None = None,
    ) -> SyncSnapshot:
        """Package records into a checksummed snapshot.

        Raises:
            InvalidSyncDataError: If the assembled snapshot does not validate.
        """
        return self.envelope.build_snapshot(tab_records, extra_metadata)

    async def extract_tab_content(self, handle: Any) -> None:
        """Page content capture is not supported; always returns None."""
        return None

    # -- inbound ----------------------------------------------------------

    def deserialize_tab(
        self,
        record: TabRecord | Mapping[str, Any],
        *,
        target_window_id: int | None = None,
        preserve_index: bool = True,
        preserve_pinned: bool = True,
    ) -> TabCreateParams:
        """Turn a record into tab creation parameters.

        Restored tabs are never activated. ``windowId`` is only set when the
        caller names a target window.

        Raises:
            InvalidTabDataError: If the record does not validate.
        """
        validation = validate_tab_record(record)
        if not validation.is_valid:
            logger.warning("tab_deserialization_invalid", extra={"errors": validation.errors})
            raise InvalidTabDataError(
                "Invalid tab data for deserialization", details={"errors": validation.errors}
            )

        tab = as_wire(record)
        params: dict[str, Any] = {
            "url": tab["url"],
            "active": False,
            "pinned": preserve_pinned and tab.get("pinned") is True,
        }
        if target_window_id is not None:
            params["window_id"] = target_window_id
        index = tab.get("index")
        if preserve_index and isinstance(index, int) and not isinstance(index, bool):
            params["index"] = index

        try:
            return TabCreateParams(**params)
        except ValidationError as exc:
            raise DeserializationError(
                "Invalid tab creation parameters", details={"errors": [str(exc)]}
            ) from exc

    def deserialize_tabs(
        self,
        records: Sequence[TabRecord | Mapping[str, Any]],
        *,
        continue_on_error: bool = False,
        target_window_id: int | None = None,
        preserve_index: bool = True,
        preserve_pinned: bool = True,
    ) -> list[TabCreateParams]:
        """Deserialize many records.

        The whole array is validated first. Without ``continue_on_error`` any
        invalid record aborts the call; with it invalid records are dropped.

        Raises:
            InvalidTabsDataError: If the array is invalid and errors are not tolerated.
        """
        if not isinstance(records, list | tuple):
            raise InvalidTabsDataError("Input must be an array")
        validation = validate_tab_array(records)
        if not validation.is_valid and not continue_on_error:
            logger.warning("tabs_deserialization_invalid", extra={"errors": validation.errors})
            raise InvalidTabsDataError(
                "Invalid tabs data for deserialization", details={"errors": validation.errors}
            )

        results: list[TabCreateParams] = []
        for index, record in enumerate(records):
            try:
                results.append(
                    self.deserialize_tab(
                        record,
                        target_window_id=target_window_id,
                        preserve_index=preserve_index,
                        preserve_pinned=preserve_pinned,
                    )
                )
            except InvalidTabDataError as exc:
                logger.warning(
                    "tab_deserialization_skipped",
                    extra={"index": index, "errors": exc.details.get("errors")},
                )

        return results

    # -- helpers ----------------------------------------------------------

    def sanitize_title(self, title: Any) -> str:
        if not isinstance(title, str):
            return self.cfg.default_title
        cleaned = title.strip()
        if not cleaned:
            return self.cfg.default_title
        return cleaned[: self.cfg.title_max_length]

    def repair_tab_record(self, record: Mapping[str, Any], errors: list[str]) -> dict[str, Any]:
        """Fill the fields a local record is allowed to be missing.

        Only ``url``, ``title``, ``timestamp`` and ``deviceId`` are repairable;
        present-but-invalid URLs are left alone so they fail revalidation.
        """
        fixed = dict(record)
        for name in {_error_field(error) for error in errors}:
            if name == "url" and not fixed.get("url"):
                fixed["url"] = BLANK_URL
            elif name == "title":
                fixed["title"] = self.sanitize_title(fixed.get("title"))
            elif name == "timestamp":
                fixed["timestamp"] = now_ms()
            elif name == "deviceId":
                fixed["deviceId"] = self.device_id
        return fixed

    def _validate_with_repair(
        self, record: dict[str, Any]
    ) -> tuple[dict[str, Any], RepairState]:
        state = RepairState.RAW
        current = record
        while True:
            validation = validate_tab_record(current)
            if validation.is_valid:
                if state is RepairState.REPAIRED:
                    logger.info("tab_record_repaired", extra={"url": current.get("url")})
                return current, state

            if state is RepairState.REPAIRED:
                raise TabSerializationError(
                    "Failed to serialize valid tab data",
                    details={"errors": validation.errors, "url": current.get("url")},
                )

            logger.warning(
                "tab_record_invalid_attempting_repair",
                extra={"errors": validation.errors},
            )
            current = self.repair_tab_record(current, validation.errors)
            state = RepairState.REPAIRED

    def _build_record(self, handle: Any, *, sanitize: bool) -> dict[str, Any]:
        raw_url = _handle_get(handle, "url")
        url = sanitize_url(raw_url, self.cfg.tracking_params) if sanitize else raw_url
        source_id = _handle_get(handle, "id")
        timestamp = now_ms()

        record: dict[str, Any] = {
            "id": generate_tab_id("unknown" if source_id is None else source_id, timestamp),
            "url": url,
            "title": self.sanitize_title(_handle_get(handle, "title")),
            "windowId": _handle_get(handle, "windowId"),
            "index": _handle_get(handle, "index"),
            "timestamp": timestamp,
            "deviceId": self.device_id,
            "pinned": bool(_handle_get(handle, "pinned", False)),
            "active": bool(_handle_get(handle, "active", False)),
        }
        favicon = _handle_get(handle, "favIconUrl")
        if isinstance(favicon, str) and favicon:
            record["favicon"] = favicon
        return record

    def _build_metadata(self, handle: Any, record: Mapping[str, Any]) -> dict[str, Any]:
        status = _handle_get(handle, "status")
        muted_info = _handle_get(handle, "mutedInfo")
        return {
            "serializedAt": now_ms(),
            "serializerVersion": self.version,
            "domain": extract_domain(record["url"]),
            "protocol": extract_protocol(record["url"]),
            "tabState": {
                "loading": status == "loading",
                "complete": status == "complete",
                "audible": bool(_handle_get(handle, "audible", False)),
                "muted": bool(_handle_get(muted_info, "muted", False)) if muted_info else False,
                "incognito": bool(_handle_get(handle, "incognito", False)),
            },
        }
