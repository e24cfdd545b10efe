from __future__ import annotations

from datetime import datetime

from pydantic import AwareDatetime, BaseModel


class CacheEntry(BaseModel):
    """A cached successful upstream response."""

    expires_at: AwareDatetime
    headers: dict[str, str]  # Subset of FORWARDED_HEADERS
    body: bytes

    def is_fresh(self, now: datetime) -> bool:
        return now < self.expires_at


class DiskCacheMetadata(BaseModel):
    """Contents of the ``<digest>.json`` artifact stored next to the body blob."""

    key: str
    expires_at: AwareDatetime
    headers: dict[str, str]
