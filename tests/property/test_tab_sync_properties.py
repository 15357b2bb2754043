"""Property-based tests for tab records, snapshots and URL sanitization."""

from __future__ import annotations

import asyncio
from urllib.parse import parse_qsl, urlsplit

import pytest

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given, settings, strategies as st

from tabsync.config import DEFAULT_TRACKING_PARAMS, SyncConfig
from tabsync.core.checksum import compute_checksum
from tabsync.core.url_utils import sanitize_url
from tabsync.domain.models import DeviceMetadata
from tabsync.domain.services.schema_validator import validate_tab_array, validate_tab_record
from tabsync.domain.services.sync_envelope import SyncEnvelopeBuilder
from tabsync.domain.services.tab_serializer import TabSerializer

REQUIRED_FIELDS = ("id", "url", "title", "windowId", "index", "timestamp", "deviceId")

url_strategy = st.from_regex(r"https://[a-z]{1,12}\.example\.com/[a-z0-9/_-]{0,20}", fullmatch=True)

record_strategy = st.fixed_dictionaries(
    {
        "id": st.from_regex(r"tab_[0-9]{1,5}_[0-9]{13}_[0-9a-z]{6}", fullmatch=True),
        "url": url_strategy,
        "title": st.text(min_size=1, max_size=80),
        "windowId": st.integers(min_value=0, max_value=10_000),
        "index": st.integers(min_value=0, max_value=500),
        "timestamp": st.integers(min_value=1, max_value=4_102_444_800_000),
        "deviceId": st.from_regex(r"device_(mac|win|linux)_[0-9]{13}_[0-9a-z]{9}", fullmatch=True),
    },
    optional={
        "pinned": st.booleans(),
        "active": st.booleans(),
        "favicon": url_strategy,
    },
)

handle_strategy = st.fixed_dictionaries(
    {
        "id": st.integers(min_value=0, max_value=100_000),
        "url": url_strategy,
        "title": st.text(max_size=300),
        "windowId": st.integers(min_value=0, max_value=10_000),
        "index": st.integers(min_value=0, max_value=500),
        "pinned": st.booleans(),
        "active": st.booleans(),
    }
)


def _device() -> DeviceMetadata:
    return DeviceMetadata(
        device_id="device_linux_1700000000000_abc123def",
        device_name="Firefox on Linux",
        browser_name="Firefox",
        browser_version="121.0",
        platform="Linux x86_64",
        last_seen=1_700_000_000_000,
    )


class TestValidationProperties:
    @given(record=record_strategy)
    @settings(max_examples=100, deadline=None)
    def test_well_formed_records_are_valid(self, record: dict) -> None:
        """Every record built from valid parts passes validation."""
        assert validate_tab_record(record).is_valid

    @given(
        record=record_strategy,
        removed=st.sets(st.sampled_from(REQUIRED_FIELDS), min_size=1),
    )
    @settings(max_examples=100, deadline=None)
    def test_missing_fields_are_each_reported(self, record: dict, removed: set[str]) -> None:
        """Removing required fields yields an error naming each of them."""
        for name in removed:
            record.pop(name)

        result = validate_tab_record(record)

        assert not result.is_valid
        for name in removed:
            assert any(error.startswith(f"TabRecord.{name} ") for error in result.errors)

    @given(records=st.lists(record_strategy, max_size=8))
    @settings(max_examples=50, deadline=None)
    def test_duplicate_warnings_match_repeated_urls(self, records: list[dict]) -> None:
        """One duplicate warning per repeated URL occurrence."""
        result = validate_tab_array(records)

        repeats = len(records) - len({record["url"] for record in records})
        duplicate_warnings = [w for w in result.warnings if w.startswith("Duplicate URL")]
        assert len(duplicate_warnings) == repeats


class TestSerializerProperties:
    @given(handle=handle_strategy)
    @settings(max_examples=50, deadline=None)
    def test_round_trip_preserves_identity(self, handle: dict) -> None:
        """Deserializing a serialized tab yields the same url, pin and position."""
        serializer = TabSerializer(SyncConfig(), _device())

        record = asyncio.run(serializer.serialize_tab(handle))
        params = serializer.deserialize_tab(record)

        assert validate_tab_record(record).is_valid
        assert params.url == handle["url"]
        assert params.pinned is handle["pinned"]
        assert params.index == handle["index"]
        assert params.active is False
        assert 0 < len(record.title) <= 200


class TestChecksumProperties:
    @given(records=st.lists(record_strategy, min_size=1, max_size=5), new_url=url_strategy)
    @settings(max_examples=50, deadline=None)
    def test_checksum_is_stable_and_url_sensitive(self, records: list[dict], new_url: str) -> None:
        """Same content hashes the same; a different URL hashes differently."""
        envelope = SyncEnvelopeBuilder(SyncConfig(), _device())
        snapshot = envelope.build_snapshot(records)
        wire = snapshot.to_wire()

        assert envelope.compute_checksum(wire["tabs"], wire["metadata"]) == snapshot.checksum
        assert envelope.accept_snapshot(wire).accepted

        if new_url != wire["tabs"][0]["url"]:
            wire["tabs"][0]["url"] = new_url
            assert envelope.compute_checksum(wire["tabs"], wire["metadata"]) != snapshot.checksum
            assert not envelope.accept_snapshot(wire).accepted

    @given(payload=st.dictionaries(st.text(max_size=10), st.integers() | st.text(max_size=10)))
    @settings(max_examples=100, deadline=None)
    def test_checksum_ignores_key_order(self, payload: dict) -> None:
        reordered = dict(reversed(list(payload.items())))

        assert compute_checksum(payload) == compute_checksum(reordered)


class TestSanitizeProperties:
    @given(
        base=url_strategy,
        kept=st.dictionaries(
            st.from_regex(r"[a-z]{1,8}", fullmatch=True).filter(
                lambda key: key not in DEFAULT_TRACKING_PARAMS
            ),
            st.from_regex(r"[a-z0-9]{0,8}", fullmatch=True),
            max_size=4,
        ),
        tracking=st.lists(st.sampled_from(DEFAULT_TRACKING_PARAMS), min_size=1, max_size=4),
    )
    @settings(max_examples=100, deadline=None)
    def test_tracking_params_are_removed(
        self, base: str, kept: dict[str, str], tracking: list[str]
    ) -> None:
        """Tracking params disappear; everything else survives in order."""
        pieces = [f"{key}={value}" for key, value in kept.items()]
        pieces += [f"{name}=x" for name in tracking]
        url = f"{base}?{'&'.join(pieces)}"

        sanitized = sanitize_url(url, DEFAULT_TRACKING_PARAMS)

        remaining = parse_qsl(urlsplit(sanitized).query, keep_blank_values=True)
        assert remaining == list(kept.items())
        assert sanitize_url(sanitized, DEFAULT_TRACKING_PARAMS) == sanitized
