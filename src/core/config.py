"""Configuration Management."""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Builder settings from environment."""

    model_config = SettingsConfigDict(
        env_prefix="STUDIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # History
    history_limit: int = Field(default=100, gt=0, description="Max retained undo snapshots")

    # Canvas
    zoom_default: int = Field(default=100, gt=0, description="Initial zoom percentage")
    zoom_min: int = Field(default=25, gt=0, description="Lowest zoom percentage")
    zoom_max: int = Field(default=400, gt=0, description="Highest zoom percentage")
    zoom_step: int = Field(default=25, gt=0, description="Zoom in/out increment")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    json_logs: bool = Field(default=False, description="Use JSON log format")

    # Project documents
    max_project_bytes: int = Field(
        default=5 * 1024 * 1024, gt=0, description="Max size of a project definition payload"
    )
    max_tree_depth: int = Field(default=64, gt=0, description="Max component nesting depth (roots are level 1)")

    # Code generation
    template_dir: str | None = Field(default=None, description="Override codegen template directory")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
