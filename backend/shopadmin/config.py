# backend/shopadmin/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///shopadmin.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Dev/test convenience; production runs `flask db upgrade` instead
    CREATE_SCHEMA_ON_STARTUP = _env_bool("CREATE_SCHEMA_ON_STARTUP", True)

    # Session tokens
    JWT_SECRET = os.environ.get("JWT_SECRET", "change-me")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_SECONDS = _env_int("JWT_EXPIRES_SECONDS", 60 * 60 * 24)
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "shopadmin_token")
    AUTH_COOKIE_SECURE = _env_bool("AUTH_COOKIE_SECURE", False)

    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)
    PASSWORD_MIN_LENGTH = 6

    # Bootstrap credential: always logs in as ADMIN, even with the store down.
    # Disable in production once a real admin account exists.
    BOOTSTRAP_ADMIN_ENABLED = _env_bool("BOOTSTRAP_ADMIN_ENABLED", True)
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@localhost")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "admin123")
    ADMIN_NAME = os.environ.get("ADMIN_NAME", "Admin")

    IDEMPOTENCY_TTL_SECONDS = 24 * 60 * 60
    IDEMPOTENCY_MAX_KEYS = 10_000

    DEFAULT_LOW_STOCK_THRESHOLD = 5

    # Notifications are skipped entirely when SMTP_HOST is unset
    SMTP_HOST = os.environ.get("SMTP_HOST")
    SMTP_PORT = _env_int("SMTP_PORT", 587)
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD")
    SMTP_FROM = os.environ.get("SMTP_FROM")
    SMTP_USE_TLS = _env_bool("SMTP_USE_TLS", True)
    ORDER_NOTIFICATION_EMAIL = os.environ.get("ORDER_NOTIFICATION_EMAIL") or ADMIN_EMAIL

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]
