"""Application configuration."""
from typing import Literal
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


ENV_FILE_BACKEND = Path(__file__).resolve().parents[1] / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_BACKEND),
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///./cms.db"
    database_echo: bool = False

    # Content types registered by the module-level app ("module:attribute")
    content_types_module: str = "cms.demo:CONTENT_TYPES"

    # Pagination
    default_page_size: int = 20
    max_page_size: int = 100

    # HTTP
    api_prefix: str = "/api/cms"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Application
    app_env: str = "development"
    log_level: Literal["debug", "info", "warning", "error"] = "info"


settings = Settings()
