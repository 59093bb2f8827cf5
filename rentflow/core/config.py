"""
RentFlow Application Configuration
Loads settings from .env file using Pydantic v2 with BaseSettings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==================== Project Info ====================
    PROJECT_NAME: str = "RentFlow API"
    PROJECT_DESCRIPTION: str = "Multi-company property management backend - lease lifecycle engine"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # ==================== Database ====================
    DATABASE_URL: str = "sqlite:///rentflow_local.db"
    DATABASE_ECHO: bool = False

    # ==================== Database Connection Pool ====================
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_RECYCLE: int = 3600

    # ==================== Security & Authentication ====================
    SECRET_KEY: str = "change-this-secret-key-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # ==================== Features ====================
    DEBUG: bool = False
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"

    # ==================== Leases ====================
    LEASE_NUMBER_PREFIX: str = "LEASE"
    DEFAULT_CURRENCY: str = "KES"

    # ==================== Background Jobs ====================
    REDIS_URL: str = "redis://localhost:6379/0"
    EXPIRY_SWEEP_HOUR: int = 0  # UTC
    EXPIRY_SWEEP_MINUTE: int = 5

    # ==================== Configuration Loading ====================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",  # Allow extra environment variables
        validate_default=True,
    )

    # ==================== Properties ====================
    @property
    def is_sqlite(self) -> bool:
        """True when running against a local SQLite database"""
        return self.DATABASE_URL.startswith("sqlite")


# ==================== Settings Singleton ====================
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Create default settings instance
settings = get_settings()


# ==================== Helper Functions ====================
def is_production() -> bool:
    """Check if running in production"""
    return not settings.DEBUG and not settings.is_sqlite


def is_testing() -> bool:
    """Check if running in testing mode"""
    return settings.TESTING
