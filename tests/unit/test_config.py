"""Unit tests for configuration defaults, overrides and validation."""

from __future__ import annotations

import platformdirs
import pytest
from pydantic import ValidationError

from roblox_proxy.config import (
    _DEFAULT_CACHE_DIR,
    DEFAULT_ALLOWED_HOSTS,
    CacheSettings,
    ProxySettings,
    Settings,
)


class TestDefaults:
    def test_default_cache_dir_matches_platformdirs(self) -> None:
        assert platformdirs.user_cache_dir("roblox-proxy") == _DEFAULT_CACHE_DIR

    def test_cache_defaults(self) -> None:
        settings = CacheSettings()
        assert settings.ttl_seconds == 3600
        assert settings.memory_max_entries == 1000
        assert settings.directory == _DEFAULT_CACHE_DIR

    def test_proxy_defaults(self) -> None:
        settings = ProxySettings()
        assert tuple(settings.allowed_hosts) == DEFAULT_ALLOWED_HOSTS
        assert settings.auth_param == "key"
        assert settings.access_key is None
        assert settings.default_user_agent == "roblox-proxy/1.0"


class TestEnvironmentOverrides:
    def test_nested_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ROBLOX_PROXY__CACHE__TTL_SECONDS", "60")
        monkeypatch.setenv("ROBLOX_PROXY__SERVER__PORT", "9090")
        settings = Settings()
        assert settings.cache.ttl_seconds == 60
        assert settings.server.port == 9090

    def test_access_key_is_secret(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ROBLOX_PROXY__PROXY__ACCESS_KEY", "hunter2")
        settings = Settings()
        assert settings.proxy.access_key is not None
        assert settings.proxy.access_key.get_secret_value() == "hunter2"
        assert "hunter2" not in repr(settings)

    def test_constructor_beats_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ROBLOX_PROXY__CACHE__TTL_SECONDS", "60")
        settings = Settings(cache={"ttl_seconds": 5})  # type: ignore[arg-type]
        assert settings.cache.ttl_seconds == 5


class TestConfigValidation:
    def test_wrong_type_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(server={"port": "not-a-number"})  # type: ignore[arg-type]

    def test_unknown_top_level_field_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(completely_unknown_field="oops")  # type: ignore[call-arg]

    def test_unknown_nested_field_raises_validation_error(self) -> None:
        """A typo like 'ttl_second' is caught rather than silently ignored."""
        with pytest.raises(ValidationError):
            CacheSettings(ttl_second=60)  # type: ignore[call-arg]

    @pytest.mark.parametrize("field", ["ttl_seconds", "memory_max_entries"])
    def test_non_positive_cache_limits_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            CacheSettings(**{field: 0})
