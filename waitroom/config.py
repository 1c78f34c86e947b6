"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Queue store
    store_backend: Literal["redis", "memory"] = "redis"
    redis_url: str = "redis://localhost:6379/0"
    redis_max_connections: int = 50
    store_timeout_seconds: float = 2.0
    store_scan_count: int = 100

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 9010

    # Token Configuration
    token_namespace: str = "user-queue"
    token_algorithm: str = "sha256"
    token_cookie_max_age_seconds: int = 300

    # Scheduler Configuration
    scheduler_enabled: bool = False
    scheduler_initial_delay_seconds: float = 5.0
    scheduler_interval_seconds: float = 15.0
    scheduler_batch_size: int = 3

    # Observability
    otel_enabled: bool = False
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "waiting-room"
    log_level: str = "INFO"
    log_format: str = "json"  # json or console


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
