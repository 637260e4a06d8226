from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "PeerPlates Waitlist API"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = True

    # ── Logging ─────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_FILE: str = "peerplates.log"

    # Public site, used to build referral and queue links
    SITE_URL: str = "http://localhost:3000"

    # ── Database ────────────────────────────────
    DATABASE_URL: str

    # ── Admin ───────────────────────────────────
    # Empty secret leaves the admin endpoints open (local development only)
    ADMIN_SECRET: str = ""

    # ── Waitlist ────────────────────────────────
    REFERRAL_POINTS_PER_SIGNUP: int = 10
    SIGNUP_RATE_LIMIT_PER_MINUTE: int = 10

    # ── Uploads ─────────────────────────────────
    CERTIFICATE_UPLOAD_DIR: str = "static/uploads/certificates"
    CERTIFICATE_MAX_BYTES: int = 5 * 1024 * 1024  # 5MB

    # ── Email Configuration ─────────────────────
    MAIL_HOST: str = ""
    MAIL_PORT: int = 587
    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_ENCRYPTION: str = "tls"
    MAIL_FROM_ADDRESS: str = "peerplates@localhost"
    MAIL_FROM_NAME: str = "PeerPlates"

    EMAIL_RELAY_URL: str = ""
    EMAIL_RELAY_API_KEY: str = ""
    EMAIL_RELAY_TIMEOUT: int = 30

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
