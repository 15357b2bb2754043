"""Pytest configuration and shared fixtures.

This module provides common fixtures for all tests.
"""

from __future__ import annotations

from typing import Any

import pytest

from tabsync.config import SyncConfig
from tabsync.domain.models import DeviceMetadata
from tabsync.domain.services.sync_envelope import SyncEnvelopeBuilder
from tabsync.domain.services.tab_serializer import TabSerializer

DEVICE_ID = "device_mac_1700000000000_abc123def"
REMOTE_DEVICE_ID = "device_win_1700000000000_zyx987wvu"
BASE_TS = 1_700_000_000_000

CHROME_UA = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def make_tab_handle(**overrides: Any) -> dict[str, Any]:
    """Live tab as the browser tab API reports it."""
    handle: dict[str, Any] = {
        "id": 1,
        "url": "https://example.com/page",
        "title": "Example page",
        "windowId": 1,
        "index": 0,
        "pinned": False,
        "active": True,
        "status": "complete",
        "favIconUrl": "https://example.com/favicon.ico",
    }
    handle.update(overrides)
    return handle


def make_tab_record(**overrides: Any) -> dict[str, Any]:
    """Tab record in wire form."""
    record: dict[str, Any] = {
        "id": "tab_1_1700000000000_abc123",
        "url": "https://example.com/page",
        "title": "Example page",
        "windowId": 1,
        "index": 0,
        "timestamp": BASE_TS,
        "deviceId": DEVICE_ID,
        "pinned": False,
        "active": False,
    }
    record.update(overrides)
    return record


@pytest.fixture
def sync_config() -> SyncConfig:
    return SyncConfig()


@pytest.fixture
def device() -> DeviceMetadata:
    return DeviceMetadata(
        device_id=DEVICE_ID,
        device_name="Chrome on macOS",
        browser_name="Chrome",
        browser_version="120.0",
        platform="MacIntel",
        last_seen=BASE_TS,
    )


@pytest.fixture
def serializer(sync_config: SyncConfig, device: DeviceMetadata) -> TabSerializer:
    return TabSerializer(sync_config, device)


@pytest.fixture
def envelope(sync_config: SyncConfig, device: DeviceMetadata) -> SyncEnvelopeBuilder:
    return SyncEnvelopeBuilder(sync_config, device)


@pytest.fixture
def tab_handle_factory():
    return make_tab_handle


@pytest.fixture
def tab_record_factory():
    return make_tab_record
