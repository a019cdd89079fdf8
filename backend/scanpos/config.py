# backend/scanpos/config.py
from __future__ import annotations
import os


def _csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/scanpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///scanpos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Sale code issuance: attempts before giving up on a colliding code
    SALE_CODE_MAX_ATTEMPTS = int(os.environ.get("SALE_CODE_MAX_ATTEMPTS", "6"))

    # Advertised to scan clients; they poll lookup at this interval
    SCAN_POLL_INTERVAL_MS = int(os.environ.get("SCAN_POLL_INTERVAL_MS", "2500"))

    ACCESS_TOKEN_TTL_HOURS = int(os.environ.get("ACCESS_TOKEN_TTL_HOURS", "12"))

    CORS_ALLOWED_ORIGINS = _csv(os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    ))

    # Retries of "database is locked" / deadlock errors during confirmation
    DB_RETRY_ATTEMPTS = int(os.environ.get("DB_RETRY_ATTEMPTS", "3"))
    DB_RETRY_BACKOFF_SECONDS = float(os.environ.get("DB_RETRY_BACKOFF_SECONDS", "0.1"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
