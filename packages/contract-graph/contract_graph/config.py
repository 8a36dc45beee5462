"""
Contract Graph Configuration

Centralized configuration management using pydantic-settings.
All environment variables should use CONTRACT_GRAPH_ prefix.

Usage:
    from contract_graph.config import settings

    settings.cache_max_entries
    settings.publication_log_path
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Dependency graph engine settings.

    Example: CONTRACT_GRAPH_LOG_LEVEL=DEBUG, CONTRACT_GRAPH_CACHE_MAX_ENTRIES=5000
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CONTRACT_GRAPH_",
        extra="ignore",  # 알 수 없는 환경 변수 무시
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    log_format: Literal["console", "json"] = Field(default="console", description="structlog renderer")

    # Result cache
    cache_enabled: bool = Field(default=True, description="Memoize query results per epoch")
    cache_max_entries: int = Field(default=10_000, ge=1, description="LRU capacity of the result cache")

    # Queries
    tree_max_depth: int = Field(default=16, ge=1, description="Default depth cap for dependency trees")

    # Persistence
    publication_log_path: Path | None = Field(
        default=None, description="Append-only JSON Lines log of committed versions (None = in-memory only)"
    )


settings = Settings()
