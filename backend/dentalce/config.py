"""Environment-driven application settings, loaded once and shared across the app."""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./gps_dental_ce.db"
    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    DEBUG: bool = True
    ALLOWED_ORIGINS: List[str] = ["http://localhost:4321", "http://localhost:8000"]
    LOG_LEVEL: str = "INFO"

    # JWT
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Public site, used for certificate verification links
    SITE_URL: str = "https://gpsdentaltraining.com"

    # Seminar program
    SEMINAR_TOTAL_SESSIONS: int = 10
    SEMINAR_CREDITS_PER_SESSION: float = 2.0

    # Scheduled jobs (external cron). Empty disables the key check.
    CRON_SECRET: str = ""

    # Email (Resend HTTP API)
    EMAIL_ENABLED: bool = False
    RESEND_API_KEY: str = ""
    RESEND_API_URL: str = "https://api.resend.com/emails"
    EMAIL_FROM: str = "GPS Dental Training <noreply@gpsdentaltraining.com>"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    def certificate_url(self, certificate_code: str) -> str:
        return f"{self.SITE_URL.rstrip('/')}/certificate/{certificate_code}"

    class Config:
        # backend/.env regardless of the working directory
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
