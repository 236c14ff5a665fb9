"""Fail-fast environment validation for the rink reports service.

Runs once before settings are built so a misconfigured worker refuses to
start instead of writing reports into the wrong store.
"""

from __future__ import annotations

import os
from functools import lru_cache
from urllib.parse import urlparse

ALLOWED_ENVIRONMENTS = {"development", "staging", "production"}


def require_env(name: str) -> str:
    """Fetch an environment variable or raise RuntimeError if missing."""
    value = os.getenv(name)
    if value is None or not value.strip():
        raise RuntimeError(f"{name} is required and must be set before startup.")
    return value.strip()


def validate_environment_value(environment: str) -> None:
    """Ensure ENVIRONMENT is one of the allowed values."""
    if environment not in ALLOWED_ENVIRONMENTS:
        allowed = ", ".join(sorted(ALLOWED_ENVIRONMENTS))
        raise RuntimeError(f"ENVIRONMENT must be one of: {allowed}.")


def validate_non_local_url(name: str, value: str) -> None:
    """Ensure a URL does not point to localhost in production."""
    parsed = urlparse(value)
    host = parsed.hostname
    if not host:
        raise RuntimeError(f"{name} must be a valid URL (missing hostname).")
    if host in {"localhost", "127.0.0.1"}:
        raise RuntimeError(f"{name} must not point to localhost in production.")


def validate_persistent_database(value: str) -> None:
    """Ensure DATABASE_URL is not an in-process SQLite database in production."""
    if value.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must not use SQLite in production.")


@lru_cache(maxsize=1)
def validate_env() -> None:
    """Validate environment variables before the service starts.

    Development and staging fall back to defaults. Production requires a real
    database and a non-local broker for the weekly report worker.
    """
    environment = os.getenv("ENVIRONMENT", "development").strip() or "development"
    validate_environment_value(environment)

    if environment == "production":
        database_url = require_env("DATABASE_URL")
        redis_url = require_env("REDIS_URL")
        validate_persistent_database(database_url)
        validate_non_local_url("DATABASE_URL", database_url)
        validate_non_local_url("REDIS_URL", redis_url)
