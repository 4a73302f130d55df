"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every setting can be overridden with a CLK2_-prefixed environment variable
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults work out of the box for a single local user
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_store_location() -> Path:
    """$XDG_DATA_HOME/clk2.json, falling back to ~/.local/share/clk2.json."""
    base = os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share"
    return Path(base) / "clk2.json"


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CLK2_", env_file=".env", case_sensitive=False,
    )

    # Store
    store_location: Path = Field(default_factory=default_store_location)
    prune_days: float = 30.0

    # Server
    host: str = "localhost"
    port: int = 6996
    cors_origins: list[str] = []

    # Client
    server_url: str = "http://localhost:6996/"
    client_timeout_seconds: float = 10.0

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("prune_days")
    @classmethod
    def non_negative_prune_days(cls, v: float) -> float:
        if v < 0:
            raise ValueError("prune_days must be >= 0")
        return v

    @field_validator("store_location", mode="before")
    @classmethod
    def expand_user(cls, v: object) -> object:
        """Allow ~ in CLK2_STORE_LOCATION."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
