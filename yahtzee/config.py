import logging
import sys
from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Persistence
    STORE_BACKEND: Literal["memory", "redis"] = "memory"
    REDIS_KEY_PREFIX: str = "yahtzee"

    # Upstash Redis
    UPSTASH_REDIS_REST_URL: str | None = None
    UPSTASH_REDIS_REST_TOKEN: str | None = None

    # Game config
    RANDOM_SEED: int | None = None
    RESTORE_ROLLS_LEFT: bool = False

    # App config
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    DEBUG: bool = False

    # WebSocket config
    WS_HEARTBEAT_INTERVAL: int = 30
    WS_CONNECTION_TIMEOUT: int = 120

    @field_validator("UPSTASH_REDIS_REST_URL")
    @classmethod
    def validate_redis_url(cls, v: str | None) -> str | None:
        if v is not None and not v.startswith("https://"):
            raise ValueError("UPSTASH_REDIS_REST_URL must be a valid HTTPS URL")
        return v

    @model_validator(mode="after")
    def validate_redis_credentials(self) -> "Settings":
        if self.STORE_BACKEND == "redis":
            if not self.UPSTASH_REDIS_REST_URL:
                raise ValueError("UPSTASH_REDIS_REST_URL is required for the redis store")
            if not self.UPSTASH_REDIS_REST_TOKEN or not self.UPSTASH_REDIS_REST_TOKEN.strip():
                raise ValueError("UPSTASH_REDIS_REST_TOKEN cannot be empty for the redis store")
        return self


def configure_logging(debug: bool = False) -> None:
    """Configure logging for the application."""
    log_level = logging.DEBUG if debug else logging.INFO
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    configure_logging(settings.DEBUG)
    logger.info("Settings loaded successfully (store=%s)", settings.STORE_BACKEND)
    return settings
