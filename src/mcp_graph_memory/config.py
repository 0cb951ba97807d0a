"""
Configuration for the graph memory service.

All settings are read from the environment through pydantic-settings.
Each concern has its own env prefix:

    MCP_FALKORDB_*  - graph database connection
    MCP_SEARCH_*    - search defaults
    MCP_SERVER_*    - MCP transport and logging
"""

from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FalkorDBSettings(BaseSettings):
    """FalkorDB (Redis graph) connection settings."""

    model_config = SettingsConfigDict(env_prefix="MCP_FALKORDB_", extra="ignore")

    # A redis:// URL takes precedence over host/port/password when set
    url: str | None = None
    host: str = "localhost"
    port: int = Field(default=6379, ge=1, le=65535)
    password: SecretStr | None = None
    graph_name: str = Field(default="memory", min_length=1)
    max_connections: int = Field(default=16, ge=1, le=512)


class SearchSettings(BaseSettings):
    """Defaults applied to search_memories when the caller leaves them out."""

    model_config = SettingsConfigDict(env_prefix="MCP_SEARCH_", extra="ignore")

    # Relevance-ranked searches keep this many results; 0 disables truncation
    default_top_results: int = Field(default=10, ge=0)
    # Page size used by the search_memories tool
    default_limit: int = Field(default=10, ge=1, le=100)


class ServerSettings(BaseSettings):
    """MCP server transport and logging."""

    model_config = SettingsConfigDict(env_prefix="MCP_SERVER_", extra="ignore")

    transport: Literal["stdio", "http"] = "stdio"
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {v!r}")
        return level


class Settings(BaseSettings):
    """Aggregated settings object."""

    model_config = SettingsConfigDict(extra="ignore")

    falkordb: FalkorDBSettings = Field(default_factory=FalkorDBSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)


settings = Settings()
