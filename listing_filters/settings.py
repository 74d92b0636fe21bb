"""Settings for the listing filter layer, read from the environment."""

import os
from enum import Enum
from typing import Any, Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment types."""

    DEV = "dev"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):  # type: ignore[misc]
    """
    Main settings class.

    All values can be overridden with environment variables of the same
    (case-sensitive) name.
    """

    model_config = SettingsConfigDict(case_sensitive=True)

    ENV: Environment = Environment.DEV

    # Database settings
    DB_USER: str
    DB_PASSWORD: SecretStr
    DB_HOST: str = "listing-filters-db"
    DB_PORT: int = 5432
    DB_NAME: str = "listing-filters"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True
    DB_INIT_RETRY_INTERVAL: int = 2
    DB_INIT_MAX_RETRIES: int = 5

    # Redis settings (server-side session store)
    REDIS_IP: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_SESSION_DB: int = 2
    REDIS_MAX_CONNECTIONS: int = 50
    REDIS_SOCKET_TIMEOUT: int = 5
    REDIS_CONNECT_TIMEOUT: int = 5
    SESSION_REDIS_KEY_PREFIX: str = "listing-session:"
    SESSION_TTL_SECONDS: int = 60 * 60 * 24 * 30

    # Logging settings
    LOG_FILE_PATH: str = "logs/logging_errors.log"
    LOG_LEVEL: str = "INFO"
    LOG_CONSOLE_FORMAT: Literal["human", "json"] = "human"

    # Filter behaviour
    FILTER_REMEMBER_PAGE: bool = True
    FILTER_CANONICAL_KEYS: bool = True
    DEFAULT_PAGE_LIMIT: int = 10

    def __init__(self, **kwargs: Any) -> None:
        """Initialize settings with environment-specific defaults."""
        super().__init__(**kwargs)
        self._apply_environment_defaults()

    def _apply_environment_defaults(self) -> None:
        """Apply environment-specific configuration defaults."""
        if self.ENV == Environment.PRODUCTION:
            if os.getenv("LOG_CONSOLE_FORMAT") is None:
                self.LOG_CONSOLE_FORMAT = "json"
            if os.getenv("LOG_LEVEL") is None:
                self.LOG_LEVEL = "WARNING"

        elif self.ENV == Environment.STAGING:
            if os.getenv("LOG_CONSOLE_FORMAT") is None:
                self.LOG_CONSOLE_FORMAT = "json"

        else:  # Environment.DEV
            if os.getenv("LOG_LEVEL") is None:
                self.LOG_LEVEL = "DEBUG"

    @property
    def DATABASE_URL(self) -> str:
        """Construct the database URL."""
        password = self.DB_PASSWORD.get_secret_value()
        return (
            f"postgresql+asyncpg://{self.DB_USER}:{password}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def REDIS_URL(self) -> str:
        """Construct the Redis URL for the session database."""
        return f"redis://{self.REDIS_IP}:{self.REDIS_PORT}/{self.REDIS_SESSION_DB}"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENV == Environment.PRODUCTION


app_settings = Settings()
