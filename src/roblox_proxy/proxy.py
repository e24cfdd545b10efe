"""Two-tier cache orchestration: memory, then disk, then upstream.

There is no cross-request locking. Two concurrent misses on the same key
both fetch upstream and both write the same key; writes are idempotent
overwrites so this only costs duplicate work.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any

import structlog

from roblox_proxy.errors import ErrorCode, ProxyError
from roblox_proxy.fetcher import is_host_allowed, parse_target, with_query
from roblox_proxy.keys import derive_cache_key, strip_query_param
from roblox_proxy.models.proxy import ProxyResponse

if TYPE_CHECKING:
    from collections.abc import Iterable

    from roblox_proxy.cache import DiskCache
    from roblox_proxy.fetcher import Fetcher
    from roblox_proxy.memory_cache import MemoryCache
    from roblox_proxy.models.cache import CacheEntry
    from roblox_proxy.models.proxy import CacheSource, ProxyRequest

log = structlog.get_logger()


class CachingProxy:
    """Resolves proxy requests against the cache tiers and the upstream."""

    def __init__(
        self,
        memory: MemoryCache,
        disk: DiskCache,
        fetcher: Fetcher,
        allowed_hosts: Iterable[str],
        ttl_seconds: int,
        auth_param: str = "key",
    ) -> None:
        self._memory = memory
        self._disk = disk
        self._fetcher = fetcher
        self._allowed_hosts = frozenset(h.lower() for h in allowed_hosts)
        self._ttl_seconds = ttl_seconds
        self._auth_param = auth_param
        self._background: set[asyncio.Task[None]] = set()

    @property
    def pending_writes(self) -> int:
        return len(self._background)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def handle(self, request: ProxyRequest) -> ProxyResponse:
        """Validate the target, then resolve it through the cache tiers.

        Raises:
            ProxyError: ``NO_TARGET``/``INVALID_TARGET``/``HOST_NOT_ALLOWED``,
                before either cache tier is consulted.
        """
        target = parse_target(request.target)
        if not is_host_allowed(target, self._allowed_hosts):
            raise ProxyError(ErrorCode.HOST_NOT_ALLOWED, "host not allowed")

        query = strip_query_param(request.query, self._auth_param)
        return await self.resolve(request, with_query(target, query))

    async def resolve(self, request: ProxyRequest, target_url: str) -> ProxyResponse:
        key = derive_cache_key(request.path, request.query, self._auth_param)

        entry = self._memory.get(key)
        if entry is not None:
            log.debug("memory_cache_hit", key=key)
            return self._from_entry(entry, "memory")

        entry = await self._disk.read(key)
        if entry is not None:
            log.debug("disk_cache_hit", key=key)
            self._memory.put(key, entry.headers, entry.body)
            return self._from_entry(entry, "disk")

        try:
            result = await self._fetcher.fetch(target_url, request)
        except ProxyError as exc:
            return ProxyResponse(
                status_code=exc.status_code,
                headers={"content-type": "application/json"},
                body=json.dumps({"error": "proxy error", "message": exc.message}).encode(),
            )
        except Exception as exc:
            log.exception("upstream_unexpected_error", url=target_url)
            return ProxyResponse(
                status_code=500,
                headers={"content-type": "application/json"},
                body=json.dumps({"error": "proxy error", "message": str(exc)}).encode(),
            )

        if result.status != 200:
            headers = {}
            if "content-type" in result.headers:
                headers["content-type"] = result.headers["content-type"]
            return ProxyResponse(
                status_code=result.status,
                headers=headers,
                body=result.body,
                source="upstream",
            )

        self._memory.put(key, result.headers, result.body)
        self._spawn(self._disk.write(key, result.headers, result.body), key)

        headers = dict(result.headers)
        headers.setdefault("cache-control", f"public, max-age={self._ttl_seconds}")
        return ProxyResponse(status_code=200, headers=headers, body=result.body, source="upstream")

    # ------------------------------------------------------------------
    # Background disk writes
    # ------------------------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, None], key: str) -> None:
        task = asyncio.create_task(coro, name=f"disk-cache-write:{key}")
        self._background.add(task)
        task.add_done_callback(self._on_write_done)

    def _on_write_done(self, task: asyncio.Task[None]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.warning(
                "disk_cache_background_error",
                task=task.get_name(),
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def drain(self) -> None:
        """Wait for all scheduled disk writes to finish."""
        while self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    @staticmethod
    def _from_entry(entry: CacheEntry, source: CacheSource) -> ProxyResponse:
        return ProxyResponse(
            status_code=200,
            headers=dict(entry.headers),
            body=entry.body,
            source=source,
        )
