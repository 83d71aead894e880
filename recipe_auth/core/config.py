

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings model.

    All configuration variables are loaded from environment variables
    (or a local .env file) with fallback defaults for development.
    JWT_SECRET has no usable default: the app factory refuses to start
    without it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Recipe Auth API"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./recipe_auth.db"
    database_echo: bool = False

    # JWT settings
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expires_in: str = "7d"

    # Password hashing
    bcrypt_rounds: int = 12

    # Google OAuth settings
    google_client_id: Optional[str] = None
    google_tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo"

    # CORS
    cors_origins: List[str] = ["*"]

    @property
    def google_oauth_enabled(self) -> bool:
        """Google sign-in is only available when a client id is configured."""
        return bool(self.google_client_id)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
