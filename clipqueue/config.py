"""Application configuration via environment variables."""

import os
import tempfile
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Queue limits
    max_queue_size: int = 10
    operation_timeout_seconds: float = 300.0
    cleanup_interval_seconds: float = 60.0
    operation_ttl_seconds: float = 30 * 60
    readiness_retry_seconds: float = 5.0

    # Executor ("package.module:attribute"); empty means no executor configured
    executor_path: str = ""

    # Output files produced by the executor
    artifacts_dir: str = os.path.join(tempfile.gettempdir(), "clipqueue_artifacts")

    # Server
    host: str = "0.0.0.0"
    port: int = 8001
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_prefix="CLIPQUEUE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
