"""Unit tests for roblox_proxy.errors."""

from __future__ import annotations

import pytest

from roblox_proxy.errors import ErrorCode, ProxyError


@pytest.mark.parametrize(
    ("code", "status"),
    [
        (ErrorCode.NO_TARGET, 400),
        (ErrorCode.INVALID_TARGET, 400),
        (ErrorCode.HOST_NOT_ALLOWED, 403),
        (ErrorCode.INVALID_ACCESS_KEY, 401),
        (ErrorCode.UPSTREAM_FETCH_FAILED, 500),
    ],
)
def test_status_code_mapping(code: ErrorCode, status: int) -> None:
    assert ProxyError(code, "msg").status_code == status


def test_every_code_has_a_status() -> None:
    for code in ErrorCode:
        assert ProxyError(code, "msg").status_code >= 400


def test_message_and_defaults() -> None:
    err = ProxyError(ErrorCode.HOST_NOT_ALLOWED, "host not allowed")
    assert str(err) == "host not allowed"
    assert err.message == "host not allowed"
    assert err.recoverable is False
