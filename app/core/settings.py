"""
Core settings and environment variables for the Roadkill Reporter backend.
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
    APP_NAME: str = "Roadkill Reporter"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - Mobile dev servers allowed to access this API
    CORS_ORIGINS: str = "http://localhost:8081,http://localhost:19006"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # In-memory store for local development without Firebase credentials
    USE_MOCK_DB: bool = False
    MOCK_DB_PATH: Optional[str] = "./mock_db.json"

    # Service area (rectangular box approximating the city limits)
    SERVICE_AREA_MIN_LAT: float = 35.95
    SERVICE_AREA_MAX_LAT: float = 36.05
    SERVICE_AREA_MIN_LON: float = -84.35
    SERVICE_AREA_MAX_LON: float = -84.25

    # Duplicate detection
    DEDUP_RADIUS_METERS: float = 100.0
    DEDUP_WINDOW_MINUTES: int = 60

    # Rate limiting (per hashed client IP)
    RATE_LIMIT_MAX_SUBMISSIONS: int = 5
    RATE_LIMIT_WINDOW_MINUTES: int = 60
    IP_HASH_SALT: str = "roadkill_reporter_salt"

    # Operator listing
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # City notification
    # - NOTIFICATION_PROVIDER: "smtp", "webhook" or "log" (dev, no delivery)
    NOTIFICATION_PROVIDER: str = "log"
    CITY_CONTACT_EMAIL: Optional[str] = None
    CITY_WEBHOOK_URL: Optional[str] = None
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    SMTP_FROM: Optional[str] = None
    NOTIFICATION_TIMEOUT_SECONDS: float = 15.0

    # Identity
    # - AUTH_PROVIDER: "firebase" (ID tokens) or "static" (STATIC_TOKENS, dev/test only)
    # - STATIC_TOKENS: "token=uid[:operator][:email],..."
    AUTH_PROVIDER: str = "firebase"
    STATIC_TOKENS: str = ""
    OPERATOR_UIDS: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def operator_uids(self) -> List[str]:
        return [uid.strip() for uid in self.OPERATOR_UIDS.split(",") if uid.strip()]


# Global settings instance
settings = Settings()
