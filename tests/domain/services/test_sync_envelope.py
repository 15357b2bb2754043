"""Tests for snapshot assembly and the inbound trust gate."""

from __future__ import annotations

import copy
import json

import pytest

from tabsync.config import SyncConfig
from tabsync.domain.exceptions.domain_exceptions import (
    ChecksumMismatchError,
    ErrorCode,
    InvalidSyncDataError,
    VersionIncompatibleError,
)
from tabsync.domain.models import SyncSnapshot
from tabsync.domain.services.sync_envelope import SyncEnvelopeBuilder


@pytest.fixture
def snapshot(envelope, tab_record_factory) -> SyncSnapshot:
    return envelope.build_snapshot(
        [
            tab_record_factory(),
            tab_record_factory(
                id="tab_2_1700000000000_zzz999", url="https://example.org/", index=1
            ),
        ]
    )


class TestBuildSnapshot:
    def test_envelope_fields(self, snapshot, device):
        assert snapshot.version == "1.0.0"
        assert snapshot.device_id == device.device_id
        assert snapshot.timestamp > 0
        assert len(snapshot.tabs) == 2
        assert snapshot.metadata.tab_count == 2
        assert snapshot.metadata.sync_id.startswith("sync_")
        assert snapshot.metadata.device_name == "Chrome on macOS"
        assert snapshot.metadata.last_seen >= device.last_seen

    def test_checksum_matches_payload(self, envelope, snapshot):
        wire = snapshot.to_wire()

        assert snapshot.checksum == envelope.compute_checksum(wire["tabs"], wire["metadata"])
        assert len(snapshot.checksum) == 64

    def test_extra_metadata_is_kept(self, envelope, tab_record_factory):
        snapshot = envelope.build_snapshot([tab_record_factory()], {"trigger": "alarm"})

        assert snapshot.to_wire()["metadata"]["trigger"] == "alarm"

    def test_extra_metadata_cannot_override_counts(self, envelope, tab_record_factory):
        snapshot = envelope.build_snapshot([tab_record_factory()], {"tabCount": 50})

        assert snapshot.metadata.tab_count == 1

    def test_empty_snapshot_is_allowed(self, envelope):
        snapshot = envelope.build_snapshot([])

        assert snapshot.tabs == []
        assert envelope.accept_snapshot(snapshot.to_wire()).accepted

    def test_invalid_record_is_rejected(self, envelope, tab_record_factory):
        with pytest.raises(InvalidSyncDataError) as exc_info:
            envelope.build_snapshot([tab_record_factory(index=-3)])

        assert exc_info.value.details["errors"][0].startswith("SyncSnapshot.tabs[0]: ")

    def test_configured_algorithm_is_used(self, device, tab_record_factory):
        builder = SyncEnvelopeBuilder(SyncConfig(checksum_algorithm="md5"), device)

        snapshot = builder.build_snapshot([tab_record_factory()])

        assert len(snapshot.checksum) == 32
        assert builder.accept_snapshot(snapshot.to_wire()).accepted


class TestChecksum:
    def test_is_deterministic(self, envelope, snapshot):
        wire = snapshot.to_wire()

        first = envelope.compute_checksum(wire["tabs"], wire["metadata"])
        second = envelope.compute_checksum(copy.deepcopy(wire["tabs"]), dict(wire["metadata"]))

        assert first == second

    def test_changes_with_url(self, envelope, snapshot):
        wire = snapshot.to_wire()
        changed = copy.deepcopy(wire["tabs"])
        changed[0]["url"] = "https://example.com/other"

        assert envelope.compute_checksum(changed, wire["metadata"]) != snapshot.checksum

    def test_accepts_models_and_dicts_alike(self, envelope, snapshot):
        wire = snapshot.to_wire()

        assert envelope.compute_checksum(snapshot.tabs, snapshot.metadata) == (
            envelope.compute_checksum(wire["tabs"], wire["metadata"])
        )


class TestAcceptSnapshot:
    def test_accepts_own_snapshot_unchanged(self, envelope, snapshot):
        wire = snapshot.to_wire()

        result = envelope.accept_snapshot(wire)

        assert result.accepted
        assert result.error_code is None
        assert result.snapshot is wire
        assert result.raise_for_status() is wire

    def test_accepts_after_json_transport(self, envelope, snapshot):
        received = json.loads(json.dumps(snapshot.to_wire()))

        result = envelope.accept_snapshot(received)

        assert result.accepted
        assert result.to_model().checksum == snapshot.checksum

    def test_accepts_model_instance(self, envelope, snapshot):
        assert envelope.accept_snapshot(snapshot).accepted

    def test_tampered_checksum(self, envelope, snapshot):
        wire = snapshot.to_wire()
        wire["checksum"] = "0" * 64

        result = envelope.accept_snapshot(wire)

        assert not result.accepted
        assert result.error_code is ErrorCode.CHECKSUM_MISMATCH
        assert result.errors == ["Checksum validation failed - data may be corrupted"]
        assert result.snapshot is None
        with pytest.raises(ChecksumMismatchError):
            result.raise_for_status()

    def test_tampered_content(self, envelope, snapshot):
        wire = snapshot.to_wire()
        wire["tabs"][0]["title"] = "Something else"

        result = envelope.accept_snapshot(wire)

        assert result.error_code is ErrorCode.CHECKSUM_MISMATCH

    def test_non_string_checksum_is_a_mismatch(self, envelope, snapshot):
        wire = snapshot.to_wire()
        wire["checksum"] = 12345

        result = envelope.accept_snapshot(wire)

        assert result.error_code is ErrorCode.CHECKSUM_MISMATCH

    def test_missing_checksum_skips_integrity_check(self, envelope, snapshot):
        wire = snapshot.to_wire()
        del wire["checksum"]

        assert envelope.accept_snapshot(wire).accepted

    def test_major_version_mismatch(self, envelope, snapshot):
        wire = snapshot.to_wire()
        wire["version"] = "2.0.0"

        result = envelope.accept_snapshot(wire)

        assert not result.accepted
        assert result.error_code is ErrorCode.VERSION_INCOMPATIBLE
        assert "2.0.0" in result.errors[0]
        with pytest.raises(VersionIncompatibleError):
            result.raise_for_status()

    def test_minor_version_drift_is_fine(self, envelope, snapshot):
        wire = snapshot.to_wire()
        wire["version"] = "1.5.3"

        assert envelope.accept_snapshot(wire).accepted

    @pytest.mark.parametrize("version", ["².0.0", "١.0.0"])
    def test_non_ascii_digit_major_is_rejected(self, envelope, snapshot, version):
        wire = snapshot.to_wire()
        wire["version"] = version

        result = envelope.accept_snapshot(wire)

        assert result.error_code is ErrorCode.VERSION_INCOMPATIBLE

    def test_structure_is_checked_first(self, envelope):
        result = envelope.accept_snapshot({"version": "2.0.0", "checksum": "bogus"})

        assert result.error_code is ErrorCode.INVALID_SYNC_DATA
        assert "SyncSnapshot.deviceId must be a non-empty string" in result.errors
        with pytest.raises(InvalidSyncDataError):
            result.raise_for_status()

    def test_checksum_is_checked_before_version(self, envelope, snapshot):
        wire = snapshot.to_wire()
        wire["version"] = "2.0.0"
        wire["checksum"] = "f" * 64

        assert envelope.accept_snapshot(wire).error_code is ErrorCode.CHECKSUM_MISMATCH

    def test_non_object_is_rejected(self, envelope):
        result = envelope.accept_snapshot(["not", "a", "snapshot"])

        assert result.errors == ["SyncSnapshot must be an object"]


class TestVersionCompatibility:
    @pytest.mark.parametrize(
        ("version", "expected"),
        [
            ("1.0.0", True),
            ("1.9.12", True),
            ("2.0.0", False),
            ("0.9.0", False),
            ("x.1.0", False),
            ("².0.0", False),
            ("", False),
            (None, False),
        ],
    )
    def test_major_component(self, envelope, version, expected):
        assert envelope.is_version_compatible(version) is expected
