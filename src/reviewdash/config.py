"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (REVIEWDASH__CACHE__TTL_SECONDS=300)
  2. reviewdash.yaml        (searched in cwd, then the platform config dir)
  3. Hardcoded defaults

The config file is optional: all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("reviewdash")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "cache.db")


def _find_config_file() -> str | None:
    """Return the path of the first reviewdash.yaml found, or None."""
    candidates = [
        Path("reviewdash.yaml"),
        Path(platformdirs.user_config_dir("reviewdash")) / "reviewdash.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ServerSettings(_Section):
    host: str = "127.0.0.1"
    port: int = 3000


class UpstreamSettings(_Section):
    # Lockout identity: every endpoint below shares one quota.
    name: str = "google"
    account_management_url: str = "https://mybusinessaccountmanagement.googleapis.com"
    business_information_url: str = "https://mybusinessbusinessinformation.googleapis.com"
    reviews_url: str = "https://mybusiness.googleapis.com"
    locations_read_mask: str = "name,title,storefrontAddress,phoneNumbers,websiteUri,metadata"
    reviews_page_size: int = 50
    timeout_seconds: float = 15.0


class CacheSettings(_Section):
    db_path: str = _DEFAULT_DB_PATH
    ttl_seconds: int = 600
    lockout_seconds: int = 60


class RetrySettings(_Section):
    floor_seconds: int = 60
    tick_seconds: float = 1.0
    # Used when a 429 body carries no retryAfter hint.
    default_retry_after: int = 60


class LoggingSettings(_Section):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: REVIEWDASH__SERVER__PORT=9090
        env_prefix="REVIEWDASH__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    upstream: UpstreamSettings = UpstreamSettings()
    cache: CacheSettings = CacheSettings()
    retry: RetrySettings = RetrySettings()
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
