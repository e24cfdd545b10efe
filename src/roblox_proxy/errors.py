"""Request-level errors raised by the proxy.

Only target rejection, access-key rejection and upstream transport failure
are represented here. Cache I/O errors never leave the cache classes.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    NO_TARGET = "NO_TARGET"
    INVALID_TARGET = "INVALID_TARGET"
    HOST_NOT_ALLOWED = "HOST_NOT_ALLOWED"
    INVALID_ACCESS_KEY = "INVALID_ACCESS_KEY"
    UPSTREAM_FETCH_FAILED = "UPSTREAM_FETCH_FAILED"


_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.NO_TARGET: 400,
    ErrorCode.INVALID_TARGET: 400,
    ErrorCode.HOST_NOT_ALLOWED: 403,
    ErrorCode.INVALID_ACCESS_KEY: 401,
    ErrorCode.UPSTREAM_FETCH_FAILED: 500,
}


class ProxyError(Exception):
    """A failure that is reported to the caller as an HTTP error response."""

    def __init__(self, code: ErrorCode, message: str, recoverable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self.code]

    def __repr__(self) -> str:
        return f"ProxyError(code={self.code!s}, message={self.message!r})"
