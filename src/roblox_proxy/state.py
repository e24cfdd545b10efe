"""Application state shared by the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from roblox_proxy.cache import DiskCache
from roblox_proxy.fetcher import Fetcher
from roblox_proxy.memory_cache import MemoryCache
from roblox_proxy.proxy import CachingProxy

if TYPE_CHECKING:
    import httpx

    from roblox_proxy.config import Settings


@dataclass
class AppState:
    """Everything a request handler needs, built once per process."""

    settings: Settings
    http_client: httpx.AsyncClient
    memory: MemoryCache
    disk: DiskCache
    proxy: CachingProxy


def build_state(settings: Settings, http_client: httpx.AsyncClient) -> AppState:
    """Wire caches, fetcher and proxy from settings.

    The disk cache directory is created here, before the cache is used.
    """
    ttl = timedelta(seconds=settings.cache.ttl_seconds)
    directory = Path(settings.cache.directory).expanduser()
    directory.mkdir(parents=True, exist_ok=True)

    memory = MemoryCache(ttl, max_entries=settings.cache.memory_max_entries)
    disk = DiskCache(directory, ttl)
    fetcher = Fetcher(http_client, settings.proxy)
    proxy = CachingProxy(
        memory,
        disk,
        fetcher,
        allowed_hosts=settings.proxy.allowed_hosts,
        ttl_seconds=settings.cache.ttl_seconds,
        auth_param=settings.proxy.auth_param,
    )
    return AppState(
        settings=settings,
        http_client=http_client,
        memory=memory,
        disk=disk,
        proxy=proxy,
    )
