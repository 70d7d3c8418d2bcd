"""
Configuration module for the Lands map proxy.

Settings are loaded once from environment variables (and an optional ``.env``
file) using Pydantic BaseSettings. The upstream URLs and timeout are handed to
the aggregator as a frozen ``UpstreamConfig`` so request handling never reads
mutable module state.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PLAYER_DATA_URL = "http://localhost:8100/maps/world/live/players.json?"
DEFAULT_MAP_DATA_URL = "http://localhost:8100/maps/world/markers.json?"
DEFAULT_MAP_ROOT_KEY = "me.angeschossen.lands"
DEFAULT_USER_AGENT = "Lands-Map-Proxy/0.1"


class UpstreamConfig(BaseModel):
    """Read-only view of everything the aggregator needs to reach the upstream."""

    model_config = ConfigDict(frozen=True)

    player_data_url: str
    map_data_url: str
    map_root_key: str = DEFAULT_MAP_ROOT_KEY
    timeout_ms: Optional[int] = Field(default=5000, ge=1)
    user_agent: str = DEFAULT_USER_AGENT
    forward_ids: bool = False


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variable names are the upper-cased field names
    (``PLAYER_DATA_URL``, ``UPSTREAM_TIMEOUT_MS``, ``PORT`` ...).
    """

    # Upstream
    player_data_url: str = Field(
        default=DEFAULT_PLAYER_DATA_URL,
        description="Upstream endpoint returning live player data ({players: [...]})",
    )
    map_data_url: str = Field(
        default=DEFAULT_MAP_DATA_URL,
        description="Upstream endpoint returning the marker provider payload",
    )
    map_root_key: str = Field(
        default=DEFAULT_MAP_ROOT_KEY,
        description="Root key of the marker provider inside the map payload",
    )
    upstream_timeout_ms: Optional[int] = Field(
        default=5000,
        ge=1,
        le=60000,
        description="Per-call upstream timeout in milliseconds (empty uses the HTTP client default)",
    )
    upstream_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent on every upstream request",
    )
    forward_ids: bool = Field(
        default=False,
        description="Append the /map/:id and /player/:id path id to the upstream URL",
    )

    # Responses
    not_found_format: Literal["json", "text"] = Field(
        default="json",
        description="Body format for unmatched routes",
    )
    cache_control_no_store: bool = Field(
        default=True,
        description="Send Cache-Control: no-cache, no-store, must-revalidate on every response",
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Bind address for the standalone server")
    port: int = Field(default=3000, ge=1, le=65535, description="Listening port for the standalone server")

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON instead of the coloured console format",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("upstream_timeout_ms", mode="before")
    @classmethod
    def _blank_timeout_means_default(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def upstream(self) -> UpstreamConfig:
        return UpstreamConfig(
            player_data_url=self.player_data_url,
            map_data_url=self.map_data_url,
            map_root_key=self.map_root_key,
            timeout_ms=self.upstream_timeout_ms,
            user_agent=self.upstream_user_agent,
            forward_ids=self.forward_ids,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get the process-wide settings instance.

    Raises:
        ValidationError: If environment variables are present but invalid
    """
    try:
        return Settings()
    except ValidationError as e:
        print(f"Configuration validation error: {e}", file=sys.stderr)
        raise


def validate_env_cli() -> None:
    """
    CLI command to validate environment configuration.

    Called via: python -m backend.mapproxy.core.config --check
    """
    try:
        settings = Settings()
        print("✅ Environment configuration is valid")
        print(f"Player data URL: {settings.player_data_url}")
        print(f"Map data URL: {settings.map_data_url}")
        print(f"Map root key: {settings.map_root_key}")
        timeout = f"{settings.upstream_timeout_ms} ms" if settings.upstream_timeout_ms else "client default"
        print(f"Upstream timeout: {timeout}")
        print(f"Forward ids upstream: {'yes' if settings.forward_ids else 'no'}")
        print(f"Listening on: {settings.host}:{settings.port}")
        print(f"Log level: {settings.log_level}")
    except ValidationError as e:
        print("❌ Environment configuration is invalid:")
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            print(f"  - {field}: {error['msg']}")
        sys.exit(1)


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Configuration validation utility")
    parser.add_argument("--check", action="store_true", help="Validate environment configuration")

    args = parser.parse_args()

    if args.check:
        validate_env_cli()
    else:
        parser.print_help()
