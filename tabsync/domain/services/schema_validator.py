"""Schema validation for tab sync entities.

Every ``validate_*`` function accepts an arbitrary value (a raw mapping as
decoded from JSON, or one of the wire models) and returns a
``ValidationResult``. None of them raise: malformed input produces an invalid
result with a descriptive error instead.

Errors make a value unusable. Warnings are informational; for example a
duplicate URL inside a tab array is surfaced for conflict detection but does
not invalidate the array.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tabsync.core.time_utils import now_ms
from tabsync.core.url_utils import is_valid_url
from tabsync.domain.models._base import WireModel
from tabsync.domain.models.auth import AuthProvider
from tabsync.domain.models.conflict import ConflictType
from tabsync.domain.models.validation import ValidationResult

CONFLICT_TYPES: tuple[str, ...] = tuple(t.value for t in ConflictType)
AUTH_PROVIDERS: tuple[str, ...] = tuple(p.value for p in AuthProvider)
MIN_SEVERITY = 1
MAX_SEVERITY = 3


def _as_mapping(data: Any) -> Mapping[str, Any] | None:
    if isinstance(data, WireModel):
        return data.to_wire()
    if isinstance(data, Mapping):
        return data
    return None


def _is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def _is_int(value: Any) -> bool:
    # bool is an int subclass but never a valid count, index or timestamp
    return isinstance(value, int) and not isinstance(value, bool)


def _is_non_negative_int(value: Any) -> bool:
    return _is_int(value) and value >= 0


def _is_positive_int(value: Any) -> bool:
    return _is_int(value) and value > 0


def _is_array(value: Any) -> bool:
    return isinstance(value, list | tuple)


def _require_strings(
    result: ValidationResult, data: Mapping[str, Any], entity: str, fields: tuple[str, ...]
) -> None:
    for name in fields:
        if not _is_non_empty_str(data.get(name)):
            result.error(f"{entity}.{name} must be a non-empty string")


def _optional_type(
    result: ValidationResult,
    data: Mapping[str, Any],
    entity: str,
    name: str,
    expected: type,
    label: str,
) -> None:
    value = data.get(name)
    if value is not None and not isinstance(value, expected):
        result.warn(f"{entity}.{name} should be a {label} if provided")


def validate_tab_record(data: Any) -> ValidationResult:
    """Validate one tab record."""
    entity = "TabRecord"
    tab = _as_mapping(data)
    if tab is None:
        return ValidationResult.failure(f"{entity} must be an object")

    result = ValidationResult()

    if not _is_non_empty_str(tab.get("id")):
        result.error(f"{entity}.id must be a non-empty string")

    url = tab.get("url")
    if not _is_non_empty_str(url):
        result.error(f"{entity}.url must be a non-empty string")
    elif not is_valid_url(url):
        result.error(f"{entity}.url must be a valid URL")

    _require_strings(result, tab, entity, ("title",))

    if not _is_non_negative_int(tab.get("windowId")):
        result.error(f"{entity}.windowId must be a non-negative integer")
    if not _is_non_negative_int(tab.get("index")):
        result.error(f"{entity}.index must be a non-negative integer")
    if not _is_positive_int(tab.get("timestamp")):
        result.error(f"{entity}.timestamp must be a positive integer")

    _require_strings(result, tab, entity, ("deviceId",))

    _optional_type(result, tab, entity, "favicon", str, "string")
    _optional_type(result, tab, entity, "pinned", bool, "boolean")
    _optional_type(result, tab, entity, "active", bool, "boolean")

    return result


def validate_device_metadata(data: Any) -> ValidationResult:
    """Validate device metadata; extra keys such as ``tabCount`` are ignored."""
    entity = "DeviceMetadata"
    metadata = _as_mapping(data)
    if metadata is None:
        return ValidationResult.failure(f"{entity} must be an object")

    result = ValidationResult()
    _require_strings(
        result,
        metadata,
        entity,
        ("deviceId", "deviceName", "browserName", "browserVersion", "platform"),
    )
    if not _is_positive_int(metadata.get("lastSeen")):
        result.error(f"{entity}.lastSeen must be a positive integer")
    return result


def validate_sync_snapshot(data: Any) -> ValidationResult:
    """Validate snapshot structure.

    Checksum correctness is not checked here; that is the job of the
    envelope's trust gate. A non-string checksum is only a warning.
    """
    entity = "SyncSnapshot"
    snapshot = _as_mapping(data)
    if snapshot is None:
        return ValidationResult.failure(f"{entity} must be an object")

    result = ValidationResult()
    _require_strings(result, snapshot, entity, ("version", "deviceId"))

    if not _is_positive_int(snapshot.get("timestamp")):
        result.error(f"{entity}.timestamp must be a positive integer")

    tabs = snapshot.get("tabs")
    if not _is_array(tabs):
        result.error(f"{entity}.tabs must be an array")
    else:
        for index, tab in enumerate(tabs):
            result.merge_child(f"{entity}.tabs[{index}]", validate_tab_record(tab))

    metadata = snapshot.get("metadata")
    if _as_mapping(metadata) is None:
        result.error(f"{entity}.metadata must be an object")
    else:
        result.merge_child(f"{entity}.metadata", validate_device_metadata(metadata))

    _optional_type(result, snapshot, entity, "checksum", str, "string")
    return result


def validate_conflict_item(data: Any) -> ValidationResult:
    """Validate one conflict; attached tabs are validated recursively."""
    entity = "ConflictItem"
    conflict = _as_mapping(data)
    if conflict is None:
        return ValidationResult.failure(f"{entity} must be an object")

    result = ValidationResult()

    conflict_type = conflict.get("type")
    if isinstance(conflict_type, ConflictType):
        conflict_type = conflict_type.value
    if conflict_type not in CONFLICT_TYPES:
        result.error(f"{entity}.type must be one of: {', '.join(CONFLICT_TYPES)}")

    _require_strings(result, conflict, entity, ("reason",))

    severity = conflict.get("severity")
    if not _is_int(severity) or not MIN_SEVERITY <= severity <= MAX_SEVERITY:
        result.error(
            f"{entity}.severity must be an integer between {MIN_SEVERITY} and {MAX_SEVERITY}"
        )

    for side in ("localTab", "remoteTab"):
        tab = conflict.get(side)
        if tab is not None:
            result.merge_child(f"{entity}.{side}", validate_tab_record(tab))

    return result


def validate_conflict_set(data: Any) -> ValidationResult:
    """Validate a bundle of detected conflicts."""
    entity = "ConflictSet"
    conflict_set = _as_mapping(data)
    if conflict_set is None:
        return ValidationResult.failure(f"{entity} must be an object")

    result = ValidationResult()

    for name in ("localTabs", "remoteTabs"):
        if not _is_array(conflict_set.get(name)):
            result.error(f"{entity}.{name} must be an array")

    conflicts = conflict_set.get("conflicts")
    if not _is_array(conflicts):
        result.error(f"{entity}.conflicts must be an array")
    else:
        for index, conflict in enumerate(conflicts):
            result.merge_child(f"{entity}.conflicts[{index}]", validate_conflict_item(conflict))

    if not _is_positive_int(conflict_set.get("timestamp")):
        result.error(f"{entity}.timestamp must be a positive integer")

    _require_strings(result, conflict_set, entity, ("resolutionStrategy",))
    return result


def validate_auth_tokens(data: Any, now: int | None = None) -> ValidationResult:
    """Validate token shape.

    Expired tokens are structurally valid; expiry only produces a warning.
    """
    entity = "AuthTokens"
    tokens = _as_mapping(data)
    if tokens is None:
        return ValidationResult.failure(f"{entity} must be an object")

    result = ValidationResult()
    _require_strings(result, tokens, entity, ("accessToken",))

    expires_at = tokens.get("expiresAt")
    if not _is_positive_int(expires_at):
        result.error(f"{entity}.expiresAt must be a positive integer")

    scopes = tokens.get("scopes")
    if not _is_array(scopes):
        result.error(f"{entity}.scopes must be an array")
    elif any(not isinstance(scope, str) for scope in scopes):
        result.warn(f"{entity}.scopes should only contain strings")

    provider = tokens.get("provider")
    if isinstance(provider, AuthProvider):
        provider = provider.value
    if provider not in AUTH_PROVIDERS:
        result.error(f"{entity}.provider must be one of: {', '.join(AUTH_PROVIDERS)}")

    _optional_type(result, tokens, entity, "refreshToken", str, "string")

    current = now_ms() if now is None else now
    if _is_positive_int(expires_at) and expires_at < current:
        result.warn(f"{entity} appear to be expired")

    return result


def validate_tab_array(data: Any) -> ValidationResult:
    """Validate every record in ``data`` and flag repeated URLs.

    Duplicates are warnings only: the first occurrence of a URL is kept as the
    reference and every later occurrence is reported by index.
    """
    if not _is_array(data):
        return ValidationResult.failure("Input must be an array")

    result = ValidationResult()
    if not data:
        result.warn("Tab array is empty")

    seen_urls: set[str] = set()
    for index, tab in enumerate(data):
        result.merge_child(f"Tab[{index}]", validate_tab_record(tab))

        mapping = _as_mapping(tab)
        url = mapping.get("url") if mapping is not None else None
        if not _is_non_empty_str(url):
            continue
        if url in seen_urls:
            result.warn(f"Duplicate URL found at index {index}: {url}")
        else:
            seen_urls.add(url)

    return result
