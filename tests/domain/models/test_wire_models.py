"""Tests for the camelCase wire models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tabsync.domain.models import (
    ConflictItem,
    ConflictType,
    DeviceMetadata,
    SyncSnapshot,
    TabCreateParams,
    TabRecord,
)
from tabsync.domain.models._base import as_wire


class TestTabRecord:
    def test_wire_round_trip_is_exact(self, tab_record_factory):
        wire = tab_record_factory(favicon="https://example.com/f.ico", custom={"a": 1})

        assert TabRecord.from_wire(wire).to_wire() == wire

    def test_attribute_names(self, tab_record_factory):
        record = TabRecord.from_wire(tab_record_factory())

        assert record.window_id == 1
        assert record.device_id.startswith("device_")

    def test_is_frozen(self, tab_record_factory):
        record = TabRecord.from_wire(tab_record_factory())

        with pytest.raises(ValidationError):
            record.title = "changed"

    def test_from_wire_returns_instances_unchanged(self, tab_record_factory):
        record = TabRecord.from_wire(tab_record_factory())

        assert TabRecord.from_wire(record) is record


class TestSnapshot:
    def test_checksum_payload_excludes_envelope(self, tab_record_factory, device):
        snapshot = SyncSnapshot(
            version="1.2.3",
            device_id=device.device_id,
            timestamp=1_700_000_000_000,
            tabs=[TabRecord.from_wire(tab_record_factory())],
            metadata=device,
            checksum="abc",
        )

        payload = snapshot.checksum_payload()

        assert set(payload) == {"tabs", "metadata"}
        assert payload["tabs"] == [tab_record_factory()]
        assert payload["metadata"]["deviceName"] == "Chrome on macOS"
        assert snapshot.major_version == "1"


class TestMisc:
    def test_create_params_omit_unset_fields(self):
        assert TabCreateParams(url="https://example.com/").to_wire() == {
            "url": "https://example.com/"
        }

    def test_conflict_severity_bounds(self):
        with pytest.raises(ValidationError):
            ConflictItem(type=ConflictType.DUPLICATE, reason="r", severity=4)

    def test_device_metadata_keeps_extras(self, device):
        wire = {**device.to_wire(), "tabCount": 3, "trigger": "alarm"}

        assert DeviceMetadata.from_wire(wire).to_wire() == wire

    def test_as_wire(self, device):
        assert as_wire([device, {"x": 1}, 3]) == [device.to_wire(), {"x": 1}, 3]
