"""Configuration management for the Serrian build engine using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="SERRIAN_",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Enable debug mode")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/serrian.db",
        description="Database connection URL",
        alias="DATABASE_URL",
    )

    # Default campaign budgets (used when a campaign supplies none)
    attribute_points: int = Field(
        default=150, description="Default attribute point budget", alias="ATTRIBUTE_POINTS"
    )
    skill_points: int = Field(
        default=50, description="Default starting skill point budget", alias="SKILL_POINTS"
    )
    points_needed_for_next_tier: int = Field(
        default=25,
        description="Points a parent skill needs before its children unlock",
        alias="POINTS_NEEDED_FOR_NEXT_TIER",
    )

    # Catalog files
    data_path: Path | None = Field(
        default=None,
        description="Directory holding skills.yaml and races.yaml",
        alias="DATA_PATH",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level", alias="LOG_LEVEL")
    log_format: str = Field(
        default="console", description="Log format (console or json)", alias="LOG_FORMAT"
    )

    @property
    def data_dir(self) -> Path:
        """Get the data directory path."""
        if self.data_path is not None:
            return self.data_path
        return Path(__file__).parent.parent.parent / "data"

    @property
    def config_dir(self) -> Path:
        """Get the catalog configuration directory path."""
        return self.data_dir / "config"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
