from __future__ import annotations

import logging

from app.core import config

logger = logging.getLogger(__name__)
STARTUP_PREFIX = "[STARTUP]"


def validate_database_environment() -> None:
    if config.IS_PROD and config.DATABASE_URL.startswith("sqlite"):
        logger.critical("%s SQLite is forbidden in production", STARTUP_PREFIX)
        raise RuntimeError("SQLite is forbidden in production environment")


def validate_environment() -> None:
    """Fail fast when production runs with missing or development-only settings."""
    validate_database_environment()

    missing: list[str] = []

    if config.AUTH_PROVIDER == "cognito":
        if not config.COGNITO_USER_POOL_ID:
            missing.append("COGNITO_USER_POOL_ID")
        if not config.COGNITO_CLIENT_ID:
            missing.append("COGNITO_CLIENT_ID")

    if config.IS_PROD:
        if config.JWT_SECRET_KEY == config.DEFAULT_JWT_SECRET:
            missing.append("JWT_SECRET_KEY")
        if not config.S3_BUCKET_NAME:
            missing.append("S3_BUCKET_NAME")

    if missing:
        logger.critical("%s missing configuration: %s", STARTUP_PREFIX, ",".join(missing))
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")

    logger.info(
        "%s environment validated env=%s auth_provider=%s",
        STARTUP_PREFIX,
        config.ENV_NORMALIZED,
        config.AUTH_PROVIDER,
    )
