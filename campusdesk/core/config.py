from pydantic_settings import BaseSettings
from typing import List, Any, Tuple
import json


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


def parse_grade_scale(v: str) -> List[Tuple[float, str]]:
    """
    Parse a grade table from format: GRADE:min_percentage,GRADE:min_percentage

    Returned highest threshold first so the first match wins.
    """
    if not v:
        return []
    scale = []
    for item in v.split(','):
        if ':' in item:
            grade, threshold = item.strip().rsplit(':', 1)
            scale.append((float(threshold.strip()), grade.strip()))
    return sorted(scale, key=lambda entry: entry[0], reverse=True)


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "CampusDesk"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    SECRET_KEY: str
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # Maintenance switch - login is refused while set
    MAINTENANCE_MODE: bool = False

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_ECHO: bool = False

    # ==========================================
    # Security
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours, one working day
    BCRYPT_ROUNDS: int = 12  # 4 for tests (fast), 12 for prod (secure)

    # Student lockout: failures before lock, then minutes locked
    LOGIN_MAX_ATTEMPTS: int = 3
    LOGIN_LOCKOUT_MINUTES: int = 2

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: str = "5/minute"

    # CORS (stored as comma-separated string, parsed to list)
    CORS_ORIGINS_STR: str = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Analytics
    # ==========================================
    ATTENDANCE_GOOD_THRESHOLD: float = 80.0
    ATTENDANCE_AVERAGE_THRESHOLD: float = 60.0
    GRADE_SCALE: str = "A+:90,A:85,B+:80,B:75,C:60,D:50"
    FAILING_GRADE: str = "F"

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    def get_grade_scale(self) -> List[Tuple[float, str]]:
        """Get the grade table as (min_percentage, grade) pairs"""
        return parse_grade_scale(self.GRADE_SCALE)


# Create settings instance
settings = Settings()
