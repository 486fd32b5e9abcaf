from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    # app
    app_name: str = "WatchSync"
    app_env: str = "dev"
    log_level: str = "INFO"

    # server
    host: str = "localhost"
    port: int = 3000
    cors_origins: List[str] = ["*"]

    # media
    media_dir: str = "./uploads"
    media_url_prefix: str = "/uploads"
    max_upload_bytes: int = 5 * 1024 * 1024 * 1024
    upload_chunk_bytes: int = 1024 * 1024
    allowed_extensions: List[str] = [".mkv", ".mp4", ".webm", ".mov", ".m4v", ".ogv"]

    # viewer side: how long a remote fact mutes the local player's own notification
    echo_suppress_ms: int = 500


@lru_cache
def get_settings() -> Settings:
    return Settings()
