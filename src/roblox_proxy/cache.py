"""On-disk response cache with lazy expiry.

Each key is stored as two co-located artifacts in the cache directory:
``<digest>.json`` holding a :class:`DiskCacheMetadata` record and
``<digest>.bin`` holding the raw body, where ``<digest>`` is the SHA-256 hex
digest of the key. The full key is kept in the metadata record.

All cache operations catch ``OSError`` (and metadata validation errors)
internally and degrade gracefully: read failures return ``None`` (treated as
cache miss by callers), write failures are logged and ignored (the fetched
response has already been returned). Infrastructure errors never cross the
DiskCache class boundary. Errors are still logged with ``exc_info=True`` so
they remain observable via stderr.

Artifacts are written to a temporary file and moved into place, body first,
so a reader never sees metadata without a body. Two writers racing on the
same key resolve as last-write-wins per artifact.
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import os
import tempfile
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import structlog
from pydantic import ValidationError

from roblox_proxy.models.cache import CacheEntry, DiskCacheMetadata

log = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def hash_key(key: str) -> str:
    """Map a cache key of any length to a fixed-length file name stem."""
    return hashlib.sha256(key.encode()).hexdigest()


class DiskCache:
    """File-backed response cache. The directory must already exist."""

    def __init__(
        self,
        directory: str | Path,
        ttl: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._dir = Path(directory)
        self._ttl = ttl
        self._clock = clock

    @property
    def directory(self) -> Path:
        return self._dir

    def paths_for(self, key: str) -> tuple[Path, Path]:
        """Return the ``(metadata, body)`` artifact paths for ``key``."""
        stem = hash_key(key)
        return self._dir / f"{stem}.json", self._dir / f"{stem}.bin"

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def read(self, key: str) -> CacheEntry | None:
        """Read an entry. Returns ``None`` on miss, expiry or read failure.

        An expired entry has both artifacts deleted as a side effect.
        """
        meta_path, body_path = self.paths_for(key)
        try:
            raw = await asyncio.to_thread(meta_path.read_bytes)
            meta = DiskCacheMetadata.model_validate_json(raw)
            if meta.key != key:
                return None
            if meta.expires_at <= self._clock():
                log.debug("disk_cache_expired", key=key)
                await asyncio.to_thread(self._discard, meta_path, body_path)
                return None
            body = await asyncio.to_thread(body_path.read_bytes)
        except FileNotFoundError:
            return None
        except (OSError, ValidationError):
            log.warning("disk_cache_read_error", key=key, exc_info=True)
            return None

        return CacheEntry(expires_at=meta.expires_at, headers=meta.headers, body=body)

    @staticmethod
    def _discard(*paths: Path) -> None:
        for path in paths:
            with contextlib.suppress(OSError):
                path.unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def write(self, key: str, headers: dict[str, str], body: bytes) -> None:
        """Persist an entry with a ``now + ttl`` expiry. Non-fatal on failure."""
        meta = DiskCacheMetadata(
            key=key, expires_at=self._clock() + self._ttl, headers=headers
        )
        meta_path, body_path = self.paths_for(key)
        try:
            await asyncio.to_thread(self._write_atomic, body_path, body)
            await asyncio.to_thread(
                self._write_atomic, meta_path, meta.model_dump_json().encode("utf-8")
            )
        except OSError:
            log.warning("disk_cache_write_error", key=key, exc_info=True)

    def _write_atomic(self, path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=".tmp-")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise
