"""
Application Configuration

Settings are loaded from environment variables (or a local .env file)
using pydantic-settings.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    python_env: str = Field("development", alias="PYTHON_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Embedded store by default; any SQLAlchemy async URL works
    database_url: str = Field("sqlite+aiosqlite:///./transfer_docs.db", alias="DATABASE_URL")
    redis_url: str = Field("redis://localhost:6379/0", alias="REDIS_URL")

    jwt_secret_key: str = Field("change-me-in-production", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    cors_origins: str = Field("http://localhost:3000", alias="CORS_ORIGINS")

    rate_limit_enabled: bool = Field(True, alias="RATE_LIMIT_ENABLED")
    verify_rate_limit: int = Field(30, alias="VERIFY_RATE_LIMIT")

    @property
    def is_development(self) -> bool:
        return self.python_env.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.python_env.lower() == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()


settings = get_settings()
