import logging
from typing import Optional

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Package settings loaded from environment variables."""

    # Queue Configuration
    default_queue: str = "default"

    # Uniqueness add-ons
    # Enterprise-style uniqueness: jobs declaring `unique_for` are unique
    unique_for_enabled: bool = False
    # Lock-based uniqueness: jobs declaring `lock` are unique
    unique_lock_enabled: bool = False

    # Logging Configuration
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="DEFERRED_JOBS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structured logging for applications embedding the package.

    Args:
        level: Log level name. Uses settings.log_level if not provided.
    """
    level_name = (level or settings.log_level).upper()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name)
        ),
    )
