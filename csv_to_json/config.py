"""Application configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service settings, overridable with ``CSV_TO_JSON_*`` environment variables."""

    model_config = {"env_prefix": "CSV_TO_JSON_"}

    upload_dir: Path = Path("uploaded")
    log_level: str = "INFO"
    log_json: bool = False
    host: str = "127.0.0.1"
    port: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()
