"""
Core settings and environment variables for the Civic Report Service.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "Civic Report Service"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api/v1"

    # CORS - Frontend URLs allowed to access this API
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_STORAGE_BUCKET: Optional[str] = None

    # Mock DB mode for local development without Firebase credentials
    USE_MOCK_DB: bool = False
    MOCK_DB_PATH: Optional[str] = "./mock_db.json"

    # Media uploads
    # - MEDIA_STORAGE_PROVIDER: "firebase" (Cloud Storage bucket) or "local"
    # - local files are served by the app itself under MEDIA_URL_PATH
    MEDIA_STORAGE_PROVIDER: str = "local"
    MEDIA_DIR: str = "./media"
    MEDIA_URL_PATH: str = "/media"
    BASE_PUBLIC_URL: str = "http://localhost:8000"

    # Report rules
    MAX_PHOTOS_PER_REPORT: int = 5
    MAX_VIDEOS_PER_REPORT: int = 2
    MAX_PHOTO_SIZE_MB: int = 5
    MAX_VIDEO_SIZE_MB: int = 50
    DUPLICATE_WINDOW_HOURS: int = 24
    DEFAULT_DUE_DAYS: int = 7
    MAX_DUE_DAYS: int = 30
    DEFAULT_PAGE_LIMIT: int = 10
    MAX_PAGE_LIMIT: int = 100
    ENFORCE_MUNICIPALITY_BOUNDARY: bool = False

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"


# Global settings instance
settings = Settings()
