"""Tests for identifier generation."""

from __future__ import annotations

import re

from tabsync.core.ids import generate_device_id, generate_sync_id, generate_tab_id, random_suffix


def test_tab_id_format():
    assert re.fullmatch(r"tab_42_1700000000000_[0-9a-z]{6}", generate_tab_id(42, 1_700_000_000_000))


def test_sync_id_format():
    assert re.fullmatch(r"sync_\d{13}_[0-9a-z]{8}", generate_sync_id())


def test_device_id_format():
    assert re.fullmatch(r"device_linux_5_[0-9a-z]{9}", generate_device_id("linux", 5))


def test_tab_ids_are_fresh_on_every_call():
    ids = {generate_tab_id(1, 1_700_000_000_000) for _ in range(50)}

    assert len(ids) == 50


def test_random_suffix_length():
    assert len(random_suffix(12)) == 12
