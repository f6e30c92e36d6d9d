"""
Configuration management for the Auth Service
"""
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

LOCAL_ENVIRONMENTS = ("local", "development", "dev")


class Settings(BaseSettings):
    """Auth Service configuration loaded from environment variables"""

    # Server Configuration
    ENVIRONMENT: str = "production"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./fitness_auth.db"
    DB_TIMEOUT_SECONDS: int = 10
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # Token Configuration
    JWT_SECRET: str = "change-this-secret-in-prod-0123456789abcdef"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    REFRESH_TOKEN_BYTES: int = 64

    # pbkdf2_sha256 work factor, roughly tens of milliseconds per hash
    PASSWORD_HASH_ROUNDS: int = 120000

    # Refresh cookie; Secure everywhere except local environments unless set explicitly
    REFRESH_COOKIE_NAME: str = "refreshToken"
    COOKIE_SECURE: Optional[bool] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _default_cookie_secure(self) -> "Settings":
        if self.COOKIE_SECURE is None:
            self.COOKIE_SECURE = not self.is_local
        return self

    @property
    def is_local(self) -> bool:
        return self.ENVIRONMENT.lower() in LOCAL_ENVIRONMENTS

    @property
    def refresh_cookie_max_age(self) -> int:
        return self.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60


# Global settings instance
settings = Settings()
