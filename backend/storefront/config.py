# backend/storefront/config.py
from __future__ import annotations
import os


def _split_origins(value: str | None) -> set[str]:
    if not value:
        return set()
    return {origin.strip() for origin in value.split(",") if origin.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storefront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storefront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer tokens expire this many hours after login
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    # bcrypt cost factor; tests lower it to keep hashing fast
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    CORS_ORIGINS = _split_origins(os.environ.get("CORS_ORIGINS")) or {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:4173",
        "http://127.0.0.1:4173",
    }

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Seed account created by `flask system init`
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@admin.com")
