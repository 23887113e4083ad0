"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./cashflow.db"

    # Service
    service_name: str = "cashflow-core"
    log_level: str = "INFO"

    # Projection defaults
    warning_threshold: float = 500.0
    bill_coverage_days: int = 14
    runway_max_days: int = 365
    crunch_max_days: int = 90
    remainder_offset_days: int = 7

    # Balance-delta webhook (disabled when unset)
    balance_webhook_url: str | None = None

    # HTTP Client
    http_timeout_seconds: float = 5.0
    webhook_max_retries: int = 5
    webhook_backoff_base: float = 1.0  # Exponential backoff base in seconds


settings = Settings()
