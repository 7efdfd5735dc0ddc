"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

PLACEHOLDER_JWT_SECRET: Final[str] = "CHANGE_ME_JWT"

# Load .env in development (no-op when the file is missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable.

    :param name: Environment variable to inspect.
    :param default: Value used when the variable is unset or blank.
    :raises ValueError: If the variable is set but not an integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val.strip())


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    SECRET_KEY: str
        Flask secret. Defaults to a development placeholder.
    JWT_SECRET_KEY: str
        Symmetric key used by ``flask-jwt-extended`` to sign access tokens.
    ACCESS_TOKEN_TTL_MINUTES: int
        Lifetime of signed access tokens (15 by default).
    REFRESH_TOKEN_TTL_DAYS: int
        Lifetime of stored refresh tokens (7 by default).
    VERIFICATION_TOKEN_TTL_HOURS: int
        Lifetime of email verification tokens (24 by default).
    PASSWORD_RESET_TOKEN_TTL_HOURS: int
        Lifetime of password reset tokens (1 by default).
    HASHER_WORK_FACTOR: int
        Cost exponent of the password hasher (10 by default).
    TOKEN_STORE_BACKEND: str
        ``"sql"`` (default) keeps token records in the database, ``"redis"``
        keeps them in Redis (requires ``REDIS_URL``).
    TOKEN_HASH_AT_REST: bool
        Store a SHA-256 digest of each token instead of the plaintext.
    TOKEN_SWEEP_INTERVAL_SECONDS: int
        Period of the expired-token sweeper (hourly by default).
    FRONTEND_URL: str
        Base URL used to build verification and reset links in emails.
    MAIL_FROM_NAME / MAIL_FROM_ADDRESS: str
        Sender identity for outgoing mail.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    REDIS_URL: str | None
        Redis connection string; the client is only built when set.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", PLACEHOLDER_JWT_SECRET)

    # Token lifetimes
    ACCESS_TOKEN_TTL_MINUTES = env_int("ACCESS_TOKEN_TTL_MINUTES", 15)
    REFRESH_TOKEN_TTL_DAYS = env_int("REFRESH_TOKEN_TTL_DAYS", 7)
    VERIFICATION_TOKEN_TTL_HOURS = env_int("VERIFICATION_TOKEN_TTL_HOURS", 24)
    PASSWORD_RESET_TOKEN_TTL_HOURS = env_int("PASSWORD_RESET_TOKEN_TTL_HOURS", 1)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=ACCESS_TOKEN_TTL_MINUTES)

    # Credentials
    HASHER_WORK_FACTOR = env_int("HASHER_WORK_FACTOR", 10)

    # Token storage
    TOKEN_STORE_BACKEND = os.getenv("TOKEN_STORE_BACKEND", "sql").strip().lower()
    TOKEN_HASH_AT_REST = env_bool("TOKEN_HASH_AT_REST", True)
    TOKEN_SWEEP_INTERVAL_SECONDS = env_int("TOKEN_SWEEP_INTERVAL_SECONDS", 3600)

    # Mail
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
    MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "Token Authority")
    MAIL_FROM_ADDRESS = os.getenv("MAIL_FROM_ADDRESS", "no-reply@localhost")

    # DB / cache
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REDIS_URL = os.getenv("REDIS_URL")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Keeps the password hasher cheap so suites stay fast.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    TOKEN_STORE_BACKEND = "sql"
    HASHER_WORK_FACTOR = 4
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    The application factory refuses to boot with the placeholder
    ``JWT_SECRET_KEY`` when this class is selected.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    REQUIRE_REAL_SECRETS = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
