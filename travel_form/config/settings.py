from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Define the root directory of the travel_form package
SERVICE_ROOT_DIR = Path(__file__).parent.parent.resolve()
# Path to the repository root (two levels up from this settings.py)
PROJECT_ROOT_DIR = SERVICE_ROOT_DIR.parent

ALLOWED_UPLOAD_TYPES = ("image/jpeg", "image/png", "application/pdf")


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "TravelFormService"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_HOST: str = "0.0.0.0"
    PORT: int = 5000

    # Security settings
    CORS_ORIGINS: Union[str, list[str]] = "https://vamsi-frontend.vercel.app,http://localhost:5173"
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: Union[str, list[str]] = "GET,POST,PUT,DELETE,OPTIONS"
    CORS_ALLOW_HEADERS: Union[str, list[str]] = "Content-Type,Accept,Origin"
    CORS_EXPOSE_HEADERS: Union[str, list[str]] = "Access-Control-Allow-Origin"

    # Document store settings
    DATABASE_URL: Optional[str] = None
    DB_CONNECT_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)
    DB_CREATE_SCHEMA: bool = True
    HEALTH_CHECK_STORE: bool = False

    # Upload settings
    MAX_FILE_SIZE_BYTES: int = Field(default=5 * 1024 * 1024, gt=0)
    BLOB_STORAGE: Literal["inline", "disk"] = "inline"
    UPLOAD_DIR: str = "uploads"

    # Logging configuration path (can be overridden by env var)
    LOGGING_CONFIG_PATH: str = str(SERVICE_ROOT_DIR / "config" / "logging_config.yaml")

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT_DIR / ".env"),  # Load variables from project root .env
        env_file_encoding='utf-8',
        extra='ignore'
    )

    def model_post_init(self, __context) -> None:
        """Parse comma-separated strings into lists after model initialization."""
        for name in ("CORS_ORIGINS", "CORS_ALLOW_METHODS", "CORS_ALLOW_HEADERS", "CORS_EXPOSE_HEADERS"):
            value = getattr(self, name)
            if isinstance(value, str):
                if value.strip() == "*":
                    setattr(self, name, ["*"])
                else:
                    setattr(self, name, [item.strip() for item in value.split(',') if item.strip()])

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.strip().lower() == "production"

    @property
    def expose_error_details(self) -> bool:
        """Error details are only returned to callers outside production."""
        return not self.is_production


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Configured settings instance
    """
    return Settings()

