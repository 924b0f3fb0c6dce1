"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"
    CACHE_ENABLED: bool = True

    # Application
    APP_NAME: str = "Quiz Platform API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000

    # Authentication
    JWT_SECRET_KEY: str = "change-me-access-secret"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_SECRET_KEY: str = "change-me-refresh-secret"
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Quiz Settings
    QUIZ_CACHE_TTL: int = 3600  # 1 hour
    CERTIFICATE_BASE_URL: str = "http://localhost:8000"

    # Media uploads
    UPLOAD_DIR: str = "storage/media"
    MEDIA_BASE_URL: str = "http://localhost:8000/media"
    MAX_UPLOAD_SIZE_MB: int = 5
    ALLOWED_IMAGE_TYPES: List[str] = ["jpg", "jpeg", "png", "gif", "webp"]

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
