from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

# Only these upstream headers are captured, cached and returned.
FORWARDED_HEADERS = (
    "content-type",
    "content-length",
    "cache-control",
    "last-modified",
    "etag",
)


CacheSource = Literal["memory", "disk", "upstream"]


class ProxyRequest(BaseModel):
    """The parts of an inbound request the proxy core consumes."""

    path: str  # e.g. "/proxy/https://thumbnails.roblox.com/v1/x"
    query: str = ""  # Raw query string without the leading "?"
    target: str  # Everything after "/proxy/"
    user_agent: str | None = None
    accept: str | None = None


class FetchResult(BaseModel):
    status: int
    headers: dict[str, str]
    body: bytes


class ProxyResponse(BaseModel):
    status_code: int
    headers: dict[str, str] = {}
    body: bytes = b""
    source: CacheSource | None = None
