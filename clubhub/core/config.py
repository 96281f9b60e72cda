from dateutil import tz
from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List, Any
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "ClubHub"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    SECRET_KEY: str
    API_VERSION: str = "v1"

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_RECYCLE: int = 1800

    # ==========================================
    # Read Fallback Cache (Redis)
    # ==========================================
    # Empty string disables the fallback tier; list reads then fail fast
    REDIS_URL: str = ""
    READ_FALLBACK_TTL_SECONDS: int = 3600

    # ==========================================
    # JWT / Password hashing
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12

    # ==========================================
    # CORS
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/clubhub.log"

    # ==========================================
    # Membership Rules
    # ==========================================
    MEMBERSHIP_PERIOD_MONTHS: int = 4
    MEMBERSHIP_FEE: float = 50.0
    MAX_MEMBERSHIP_LEVEL: int = 5
    PASS_THRESHOLD: int = 60
    # When true, every payment also advances the member one level (capped)
    PAYMENT_ADVANCES_LEVEL: bool = False
    SESSION_CODE_LENGTH: int = 6
    RESET_EXPIRY_DAYS: int = 1
    # Timezone that defines the "calendar day" for class check-ins
    CLUB_TIMEZONE: str = "UTC"

    @field_validator("CLUB_TIMEZONE")
    @classmethod
    def validate_club_timezone(cls, v: str) -> str:
        # An unknown zone would silently bucket check-ins by UTC
        if not v or not v.strip() or tz.gettz(v.strip()) is None:
            raise ValueError(f"Unknown timezone: {v!r}")
        return v.strip()

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def BASE_DIR(self) -> Path:
        return Path(__file__).resolve().parent.parent.parent


# Create settings instance
settings = Settings()
