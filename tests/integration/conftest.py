"""Integration test fixtures.

Provides a fully wired FastAPI app (lifespan included) backed by a temporary
cache directory. Upstream HTTP is mocked with respx.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from fastapi.testclient import TestClient

from roblox_proxy.config import Settings
from roblox_proxy.server import create_app

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(cache={"directory": str(tmp_path / "cache"), "ttl_seconds": 60})  # type: ignore[arg-type]


@pytest.fixture()
def client(settings: Settings) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Environment for running the server as a subprocess, isolated from the user's cache."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("ROBLOX_PROXY__")}
    env["ROBLOX_PROXY__CACHE__DIRECTORY"] = str(tmp_path / "cache")
    return env
