"""Application configuration."""

from pathlib import Path
from pydantic_settings import BaseSettings
from functools import lru_cache

BACKEND_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Label Review API"
    debug: bool = False
    log_level: str = "INFO"

    # CORS - Allow all origins for prototype (restrict in production)
    cors_origins: list[str] = ["*"]

    # Record store and label images
    data_path: Path = BACKEND_DIR / "data" / "applications.json"
    labels_dir: Path = BACKEND_DIR / "public"
    allowed_image_formats: set = {"PNG", "JPEG", "WEBP"}

    # Vision extraction (OpenAI)
    openai_api_key: str | None = None
    extraction_model: str = "gpt-4o-mini"
    extraction_timeout_s: float = 10.0  # Reviewers wait on this call
    extraction_max_tokens: int = 1500

    # Evaluation harness
    eval_runs_per_application: int = 10

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
