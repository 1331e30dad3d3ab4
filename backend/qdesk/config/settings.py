"""
Application Settings for QDesk

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEVELOPMENT_AUTH_SECRET = "qdesk-development-secret-change-me"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Broadcast delivery is tuned by two knobs:
    - BROADCAST_QUEUE_SIZE: frames buffered per connection before drops
    - BROADCAST_SEND_TIMEOUT: seconds a single socket write may take
    """

    # Application Settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    service_name: str = "qdesk-api"

    # CORS Configuration
    allowed_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Identity Gate (HS256 bearer tokens)
    auth_secret: str = DEVELOPMENT_AUTH_SECRET
    auth_token_ttl_seconds: int = 60 * 60 * 24 * 30
    auth_code_length: int = 6

    # Broadcast delivery
    broadcast_queue_size: int = 100
    broadcast_send_timeout: float = 5.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_runtime_limits(self) -> "Settings":
        """Reject unusable delivery limits and the dev secret in production."""
        if self.broadcast_queue_size < 1:
            raise ValueError("BROADCAST_QUEUE_SIZE must be at least 1")

        if self.broadcast_send_timeout <= 0:
            raise ValueError("BROADCAST_SEND_TIMEOUT must be positive")

        if self.auth_code_length < 4:
            raise ValueError("AUTH_CODE_LENGTH must be at least 4")

        if self.is_production and self.auth_secret == DEVELOPMENT_AUTH_SECRET:
            raise ValueError("AUTH_SECRET must be set when ENVIRONMENT=production")

        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
