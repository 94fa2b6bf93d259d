"""Configuration management for the Tally API service."""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    # Service configuration
    SERVICE_NAME: str = "tally-api"
    API_VERSION: str = "v1"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Rate limiting
    RATE_LIMIT: str = "100000/second"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    @property
    def bind_address(self) -> str:
        """Listener address as host:port."""
        return f"{self.HOST}:{self.PORT}"

    @property
    def log_level(self) -> int:
        """Numeric logging level (DEBUG whenever DEBUG mode is on)."""
        if self.DEBUG:
            return logging.DEBUG
        return getattr(logging, self.LOG_LEVEL.upper(), logging.INFO)


settings = Settings()
