"""Configuration management for the Library Lending MCP Server.

Settings are read from ``LIBRARY_LENDING_*`` environment variables (or a
``.env`` file) and validated with Pydantic v2.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LendingConfig(BaseSettings):
    """Server configuration.

    ``max_commit_retries`` bounds how many times a borrow or return is re-run
    after its rows were changed by a concurrent request.
    """

    model_config = SettingsConfigDict(
        env_prefix="LIBRARY_LENDING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # MCP handshake
    server_name: str = Field(
        default="library-lending", min_length=3, max_length=50, pattern=r"^[a-z0-9-]+$"
    )
    server_version: str = Field(default="0.1.0", pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$")

    # Storage
    database_path: Path = Path("data/library.db")
    database_url: str | None = Field(
        default=None, description="Full SQLAlchemy URL; overrides database_path when set"
    )

    # Transport
    transport: Literal["stdio", "streamable_http"] = "stdio"
    http_host: str = "127.0.0.1"
    http_port: int = Field(default=8080, ge=1024, le=65535)

    max_commit_retries: int = Field(default=3, ge=1, le=10)

    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("database_path")
    @classmethod
    def resolve_database_path(cls, v: Path) -> Path:
        """Make the path absolute and create its directory."""
        path = v.absolute()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def get_database_url(self) -> str:
        return self.database_url or f"sqlite:///{self.database_path}"


@lru_cache(maxsize=1)
def get_config() -> LendingConfig:
    """Process-wide configuration, read once from the environment."""
    return LendingConfig()


def reset_config() -> None:
    """Forget the cached configuration (useful for testing)."""
    get_config.cache_clear()
