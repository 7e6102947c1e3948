# userhub/app/core/config.py
"""
Application configuration using pydantic-settings.

Security considerations:
- Token secrets must be set via env in production (dev defaults are unsafe)
- Access and refresh tokens are signed with distinct secrets
- CORS_ORIGINS parsed from comma-separated env var, never defaults to "*"
- Database URLs normalized for async drivers automatically
- Cookies are only marked `secure` in production
"""
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Strictly typed application settings.

    Priority for loading:
    1. Environment variables (highest priority)
    2. .env file (via pydantic-settings)
    3. Default values (lowest priority, dev-safe only)

    A single instance is built at startup and handed to the token service,
    the media host client and the staging area.
    """

    # ─────────────────────────────────────────────────────────────
    # Application metadata
    # ─────────────────────────────────────────────────────────────
    PROJECT_NAME: str = "userhub"
    PROJECT_VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # ─────────────────────────────────────────────────────────────
    # Environment mode
    # ─────────────────────────────────────────────────────────────
    ENVIRONMENT: str = "development"

    # ─────────────────────────────────────────────────────────────
    # Security: JWT Configuration
    # ─────────────────────────────────────────────────────────────
    ACCESS_TOKEN_SECRET: str = "INSECURE_DEV_ACCESS_SECRET_CHANGE_IN_PRODUCTION"
    REFRESH_TOKEN_SECRET: str = "INSECURE_DEV_REFRESH_SECRET_CHANGE_IN_PRODUCTION"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10

    # ─────────────────────────────────────────────────────────────
    # Database Configuration
    # Priority: DATABASE_URL env var → SQLite fallback for local dev
    # ─────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./userhub.db"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """
        Normalize database URLs for async SQLAlchemy compatibility.

        Conversions:
        - postgres://     → postgresql+asyncpg://
        - postgresql://   → postgresql+asyncpg://
        - sqlite:///      → sqlite+aiosqlite:///
        """
        if v is None:
            return "sqlite+aiosqlite:///./userhub.db"

        url = v.strip()

        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)

        if url.startswith("postgresql://") and "+asyncpg" not in url:
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if url.startswith("sqlite:///") and "+aiosqlite" not in url:
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        return url

    # MUST be False in production to prevent SQL query exposure
    DATABASE_ECHO: bool = False

    # ─────────────────────────────────────────────────────────────
    # CORS Configuration
    # ─────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8000"

    @property
    def BACKEND_CORS_ORIGINS(self) -> List[str]:
        """
        Parse CORS_ORIGINS string into a list of allowed origins.

        Empty string returns empty list, NOT wildcard "*".
        """
        if not self.CORS_ORIGINS or not self.CORS_ORIGINS.strip():
            return []

        return [
            origin.strip()
            for origin in self.CORS_ORIGINS.split(",")
            if origin.strip()
        ]

    # ─────────────────────────────────────────────────────────────
    # Media host (Cloudinary-compatible upload API)
    # ─────────────────────────────────────────────────────────────
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""
    MEDIA_HOST_URL: str = "https://api.cloudinary.com"
    MEDIA_HOST_TIMEOUT: float = 30.0
    MEDIA_UPLOAD_FOLDER: str = ""

    # ─────────────────────────────────────────────────────────────
    # Local staging of multipart uploads
    # ─────────────────────────────────────────────────────────────
    UPLOAD_TEMP_DIR: str = "./public/temp"
    MAX_UPLOAD_SIZE_MB: int = 5
    ALLOWED_IMAGE_EXTENSIONS: str = ".jpg,.jpeg,.png,.gif,.webp"

    @property
    def allowed_image_extensions(self) -> List[str]:
        return [
            ext.strip().lower()
            for ext in self.ALLOWED_IMAGE_EXTENSIONS.split(",")
            if ext.strip()
        ]

    # ─────────────────────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        # Extra fields in .env are ignored (prevents config injection)
        extra="ignore",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def COOKIE_SECURE(self) -> bool:
        """Token cookies carry the `secure` flag only in production."""
        return self.is_production

    @property
    def is_sqlite(self) -> bool:
        """Check if using SQLite database (local development)."""
        return "sqlite" in self.DATABASE_URL.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance.

    For tests, build a Settings(...) directly or call
    get_settings.cache_clear() after changing the environment.
    """
    return Settings()


settings = get_settings()
