"""Application configuration using Pydantic Settings."""

import os
import tempfile
from functools import lru_cache
from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_env: str = "development"
    app_debug: bool = False
    log_level: str = "INFO"

    # Workspaces
    workspace_root: str = os.path.join(tempfile.gettempdir(), "codescan-workspaces")
    allow_local_repositories: bool = False

    # External tools
    pmd_path: str = "/usr/local/pmd/bin/pmd"  # PMD_PATH
    git_command_timeout: float = 30.0
    git_fetch_timeout: float = 300.0  # 5 minutes, the dominant cost of a run
    analyzer_timeout: float = 600.0
    raw_fetch_timeout: float = 15.0

    # Rule engine priority cutoffs (1 = most severe, 5 = least)
    pmd_error_max_priority: int = 2
    pmd_warning_max_priority: int = 4

    # Database
    database_url: str = "sqlite+aiosqlite:///./codescan.db"

    # Celery
    celery_broker_url: str = "redis://localhost:6379/1"
    celery_result_backend: str = "redis://localhost:6379/2"

    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]

    @model_validator(mode="after")
    def validate_priority_cutoffs(self) -> "Settings":
        """Ensure the priority cutoffs describe a valid 1..5 partition."""
        if not 1 <= self.pmd_error_max_priority <= self.pmd_warning_max_priority <= 5:
            raise ValueError(
                "pmd_error_max_priority and pmd_warning_max_priority must satisfy "
                "1 <= error <= warning <= 5"
            )
        return self

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
