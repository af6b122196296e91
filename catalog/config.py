"""
Application configuration.
Loads settings from environment variables and the .env file using pydantic-settings.
"""
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # API metadata
    API_TITLE: str = "Karvat Catalog API"
    API_DESCRIPTION: str = "Public product carousel and CMS for the Cutelaria Karvat catalog"
    API_VERSION: str = "1.0.0"
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:8000"]
    )

    # Hosted database (postgresql+asyncpg://...)
    DATABASE_URL: str = ""

    # Cloudinary image storage
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    STORAGE_BUCKET: str = "items"

    # CMS authentication (bcrypt hash of the admin password)
    ADMIN_PASSWORD_HASH: str = ""

    # Upload constraints
    MAX_IMAGES_PER_ITEM: int = Field(default=10, ge=1)
    MAX_UPLOAD_SIZE_BYTES: int = Field(default=5 * 1024 * 1024, ge=1)

    # WhatsApp contact
    WHATSAPP_DEFAULT_MESSAGE: str = "Olá! Tenho interesse."

    # Gallery modal
    GALLERY_FADE_DELAY_MS: int = Field(default=150, ge=0)
    GALLERY_SETTLE_DELAY_MS: int = Field(default=150, ge=0)
    GALLERY_MIN_SWIPE_DISTANCE: int = Field(default=50, ge=1)
    GALLERY_THUMBNAIL_WIDTH: int = Field(default=80, ge=1)
    GALLERY_MAX_SESSIONS: int = Field(default=256, ge=1)

    # Image orientation probing
    IMAGE_PROBE_TIMEOUT: float = Field(default=5.0, gt=0)
    PROBE_CARD_ORIENTATION: bool = True

    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got '{v}'")
        return upper

    def has_database(self) -> bool:
        return bool(self.DATABASE_URL)

    def has_cloudinary_config(self) -> bool:
        """Check if all Cloudinary credentials are set."""
        return bool(
            self.CLOUDINARY_CLOUD_NAME
            and self.CLOUDINARY_API_KEY
            and self.CLOUDINARY_API_SECRET
        )


def get_settings(**overrides) -> Settings:
    """
    Create a Settings instance with optional overrides.

    Raises:
        ValidationError: If any value fails validation.
    """
    return Settings(**overrides)


settings = get_settings()
