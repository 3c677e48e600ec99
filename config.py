"""Application configuration module."""

from __future__ import annotations

import logging
import os

DEFAULT_JWT_SECRET = "dev-only-secret-not-for-production"
PRODUCTION = "production"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    APP_ENV = os.getenv("APP_ENV", "development").strip().lower()
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    DATABASE_URL = os.getenv("DATABASE_URL", "")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL or "sqlite:///mentori.db"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_ISSUER = os.getenv("JWT_ISSUER", "mentori-api")
    JWT_ACCESS_TOKEN_HOURS = int(os.getenv("JWT_ACCESS_TOKEN_HOURS", "24"))

    # Passwords and one-time codes
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt")
    VERIFICATION_CODE_TTL_MINUTES = int(os.getenv("VERIFICATION_CODE_TTL_MINUTES", "10"))
    REVEAL_VERIFICATION_CODES = _env_bool(
        "REVEAL_VERIFICATION_CODES", APP_ENV != PRODUCTION
    )

    # OAuth providers
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "15"))
    OAUTH_HTTP_TIMEOUT = float(os.getenv("OAUTH_HTTP_TIMEOUT", "10"))
    GOOGLE_TOKENINFO_URL = os.getenv(
        "GOOGLE_TOKENINFO_URL", "https://oauth2.googleapis.com/tokeninfo"
    )
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
    APPLE_CLIENT_ID = os.getenv("APPLE_CLIENT_ID", "")
    APPLE_ISSUER = os.getenv("APPLE_ISSUER", "https://appleid.apple.com")
    APPLE_JWKS_URL = os.getenv("APPLE_JWKS_URL", "https://appleid.apple.com/auth/keys")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")


def check_signing_secret(config, logger: logging.Logger) -> None:
    """Refuse to start production with a missing or default secret; warn elsewhere."""

    secret = config.get("JWT_SECRET_KEY") or ""
    is_default = not secret or secret == DEFAULT_JWT_SECRET

    if config.get("APP_ENV") == PRODUCTION:
        if is_default:
            raise RuntimeError("JWT_SECRET must be set in production.")
        if not config.get("DATABASE_URL"):
            raise RuntimeError("DATABASE_URL must be set in production.")
        return

    if is_default:
        logger.warning(
            "Using the default JWT secret (development only). "
            "Set JWT_SECRET before deploying."
        )
