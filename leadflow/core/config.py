"""Configuration module for the LeadFlow lifecycle engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from leadflow.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    LOG_LEVEL: str
    LOG_FILE: str
    SMTP_SERVER: str | None
    SMTP_PORT: int
    SMTP_USERNAME: str | None
    SMTP_PASSWORD: str | None
    EMAIL_FROM: str
    EMAIL_SANDBOX_MODE: bool
    CELERY_BROKER_URL: str
    CELERY_RESULT_BACKEND: str
    CELERY_TASK_ALWAYS_EAGER: bool
    WORKFLOW_DELAYED_ACTIONS_ENABLED: bool
    WORKFLOW_EXECUTION_TIMEOUT_MINUTES: int
    SCHEDULED_ACTION_BATCH_SIZE: int
    SCORE_RECALC_INTERVAL_MINUTES: int

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))
    redis_url = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    config = Config(
        APP_NAME="LeadFlow",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./leadflow.db"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", ""),
        SMTP_SERVER=os.getenv("SMTP_SERVER"),
        SMTP_PORT=int(os.getenv("SMTP_PORT", "587")),
        SMTP_USERNAME=os.getenv("SMTP_USERNAME"),
        SMTP_PASSWORD=os.getenv("SMTP_PASSWORD"),
        EMAIL_FROM=os.getenv("EMAIL_FROM", "noreply@leadflow.app"),
        EMAIL_SANDBOX_MODE=_as_bool(os.getenv("EMAIL_SANDBOX_MODE"), default=True),
        CELERY_BROKER_URL=os.getenv("CELERY_BROKER_URL", redis_url),
        CELERY_RESULT_BACKEND=os.getenv("CELERY_RESULT_BACKEND", redis_url),
        CELERY_TASK_ALWAYS_EAGER=_as_bool(os.getenv("CELERY_TASK_ALWAYS_EAGER")),
        WORKFLOW_DELAYED_ACTIONS_ENABLED=_as_bool(
            os.getenv("WORKFLOW_DELAYED_ACTIONS_ENABLED"), default=True
        ),
        WORKFLOW_EXECUTION_TIMEOUT_MINUTES=int(os.getenv("WORKFLOW_EXECUTION_TIMEOUT_MINUTES", "30")),
        SCHEDULED_ACTION_BATCH_SIZE=int(os.getenv("SCHEDULED_ACTION_BATCH_SIZE", "100")),
        SCORE_RECALC_INTERVAL_MINUTES=int(os.getenv("SCORE_RECALC_INTERVAL_MINUTES", "60")),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.WORKFLOW_EXECUTION_TIMEOUT_MINUTES < 1:
        raise ConfigurationError("WORKFLOW_EXECUTION_TIMEOUT_MINUTES must be >= 1.")
    if config.SCHEDULED_ACTION_BATCH_SIZE < 1:
        raise ConfigurationError("SCHEDULED_ACTION_BATCH_SIZE must be >= 1.")
    if config.SCORE_RECALC_INTERVAL_MINUTES < 1:
        raise ConfigurationError("SCORE_RECALC_INTERVAL_MINUTES must be >= 1.")
    if config.is_production and config.EMAIL_SANDBOX_MODE is False and not config.SMTP_SERVER:
        raise ConfigurationError("SMTP_SERVER is required when EMAIL_SANDBOX_MODE is off in production.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
