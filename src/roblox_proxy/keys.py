"""Cache key derivation."""

from __future__ import annotations

from urllib.parse import unquote_plus


def strip_query_param(query: str, name: str) -> str:
    """Remove every ``name=...`` pair from a raw query string.

    Remaining pairs keep their original order and encoding.
    """
    kept = []
    for pair in query.split("&"):
        if not pair:
            continue
        param = pair.split("=", 1)[0]
        if unquote_plus(param) == name:
            continue
        kept.append(pair)
    return "&".join(kept)


def derive_cache_key(path: str, query: str, auth_param: str = "key") -> str:
    """Build the canonical cache key for an inbound request.

    Two requests that differ only in the value of ``auth_param`` map to the
    same key. With no query left after stripping, the key is just ``path``.
    """
    remaining = strip_query_param(query, auth_param)
    if remaining:
        return f"{path}?{remaining}"
    return path
