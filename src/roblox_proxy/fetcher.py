"""Upstream target parsing, host allow-list and the HTTP fetcher."""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import httpx
import structlog

from roblox_proxy.config import ProxySettings
from roblox_proxy.errors import ErrorCode, ProxyError
from roblox_proxy.models.proxy import FORWARDED_HEADERS, FetchResult

if TYPE_CHECKING:
    from roblox_proxy.models.proxy import ProxyRequest

log = structlog.get_logger()

# Routers tend to collapse "https://" to "https:/" inside a path segment.
_COLLAPSED_SCHEME = re.compile(r"^(https?):/+", re.IGNORECASE)
_HOSTNAME = re.compile(r"[a-z0-9._:-]+")
_EXPLICIT_SCHEME = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)


def _has_host(url: str) -> bool:
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return False
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        return False
    return _HOSTNAME.fullmatch(parts.hostname) is not None


def parse_target(raw: str) -> str:
    """Turn the part of the path after ``/proxy/`` into an absolute URL.

    Accepts full URLs (``https://host/path``) and bare ``host/path`` forms,
    the latter being reconstructed with an ``https://`` scheme.
    """
    candidate = raw.lstrip("/")
    if not candidate:
        raise ProxyError(ErrorCode.NO_TARGET, "no target")

    candidate = _COLLAPSED_SCHEME.sub(lambda m: f"{m.group(1)}://", candidate)
    if _has_host(candidate):
        return candidate

    rebuilt = f"https://{candidate}"
    if not _EXPLICIT_SCHEME.match(candidate) and _has_host(rebuilt):
        return rebuilt
    raise ProxyError(ErrorCode.INVALID_TARGET, "invalid target")


def is_host_allowed(url: str, allowed_hosts: Iterable[str]) -> bool:
    """Exact (case-insensitive) hostname match against the allow-list."""
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return False
    if not hostname:
        return False
    return hostname in {h.lower() for h in allowed_hosts}


def with_query(url: str, query: str) -> str:
    """Append a raw query string to ``url``, joining any query it already has."""
    if not query:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"


def build_http_client(settings: ProxySettings | None = None) -> httpx.AsyncClient:
    """Create the shared upstream client. Redirects are followed by httpx."""
    settings = settings or ProxySettings()
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds),
    )


def _select_headers(response: httpx.Response) -> dict[str, str]:
    headers: dict[str, str] = {}
    for name in FORWARDED_HEADERS:
        value = response.headers.get(name)
        if value:
            headers[name] = value
    # httpx has already decoded any Content-Encoding.
    if "content-length" in headers:
        headers["content-length"] = str(len(response.content))
    return headers


class Fetcher:
    """Performs a single upstream GET and normalises the result."""

    def __init__(self, client: httpx.AsyncClient, settings: ProxySettings | None = None) -> None:
        self._client = client
        self._settings = settings or ProxySettings()

    async def fetch(self, target_url: str, request: ProxyRequest) -> FetchResult:
        """Fetch ``target_url``. Any status is returned as-is.

        Raises:
            ProxyError: ``UPSTREAM_FETCH_FAILED`` for any transport-level error.
        """
        headers = {
            "User-Agent": request.user_agent or self._settings.default_user_agent,
            "Accept": request.accept or "*/*",
        }
        try:
            response = await self._client.get(target_url, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.warning("upstream_error", url=target_url, error=str(exc) or type(exc).__name__)
            raise ProxyError(
                ErrorCode.UPSTREAM_FETCH_FAILED,
                str(exc) or type(exc).__name__,
                recoverable=True,
            ) from exc

        log.info("upstream_fetch", url=target_url, status=response.status_code)
        return FetchResult(
            status=response.status_code,
            headers=_select_headers(response),
            body=response.content,
        )
