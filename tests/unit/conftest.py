"""Unit-specific fixtures (no I/O beyond a temporary cache directory)."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from roblox_proxy.cache import DiskCache
from roblox_proxy.memory_cache import MemoryCache

if TYPE_CHECKING:
    from pathlib import Path

    from tests.conftest import FakeClock

TTL = timedelta(seconds=60)


@pytest.fixture()
def disk_cache(tmp_path: Path, clock: FakeClock) -> DiskCache:
    """Disk cache rooted in a per-test temporary directory."""
    return DiskCache(tmp_path, TTL, clock=clock)


@pytest.fixture()
def memory_cache(clock: FakeClock) -> MemoryCache:
    return MemoryCache(TTL, max_entries=3, clock=clock)
