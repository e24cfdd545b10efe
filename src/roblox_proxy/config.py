"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments  (Settings(cache={"ttl_seconds": 60}))
  2. Environment variables  (ROBLOX_PROXY__CACHE__TTL_SECONDS=60)
  3. roblox-proxy.yaml      (searched in cwd, then ~/.config/roblox-proxy/)
  4. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CACHE_DIR = platformdirs.user_cache_dir("roblox-proxy")

DEFAULT_ALLOWED_HOSTS = (
    "thumbnails.roblox.com",
    "assetdelivery.roblox.com",
    "catalog.roblox.com",
    "www.roblox.com",
    "images.rbxcdn.com",
    "rthumbnails.roblox.com",
)


def _find_config_file() -> str | None:
    """Return the path of the first roblox-proxy.yaml found, or None."""
    candidates = [
        Path("roblox-proxy.yaml"),
        Path.home() / ".config" / "roblox-proxy" / "roblox-proxy.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str = "0.0.0.0"
    port: int = 3000


class ProxySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    allowed_hosts: list[str] = list(DEFAULT_ALLOWED_HOSTS)
    # Query parameter carrying the access key; never part of a cache key.
    auth_param: str = "key"
    access_key: SecretStr | None = None
    default_user_agent: str = "roblox-proxy/1.0"
    timeout_seconds: float = Field(default=30.0, gt=0)


class CacheSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ttl_seconds: int = Field(default=3600, gt=0)
    memory_max_entries: int = Field(default=1000, gt=0)
    directory: str = _DEFAULT_CACHE_DIR


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: ROBLOX_PROXY__SERVER__PORT=9090
        env_prefix="ROBLOX_PROXY__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
        extra="forbid",
    )

    server: ServerSettings = ServerSettings()
    proxy: ProxySettings = ProxySettings()
    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
