from __future__ import annotations

from roblox_proxy.models.cache import CacheEntry, DiskCacheMetadata
from roblox_proxy.models.proxy import (
    FORWARDED_HEADERS,
    FetchResult,
    ProxyRequest,
    ProxyResponse,
)

__all__ = [
    # cache
    "CacheEntry",
    "DiskCacheMetadata",
    # proxy
    "FORWARDED_HEADERS",
    "FetchResult",
    "ProxyRequest",
    "ProxyResponse",
]
