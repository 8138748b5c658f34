"""
Utilities to centralize configuration handling for the check-in services.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class AppConfig:
    """Simple container for application level settings."""

    app_name: str
    # PostgreSQL/Supabase database
    database_url: str
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    db_sslmode: str
    # Supabase
    supabase_url: str
    supabase_anon_key: str
    supabase_service_role_key: str
    # Email
    email_provider: str
    email_api_key: str
    email_from: str
    email_from_name: str
    email_function_name: str
    # Notification delivery
    notification_delay_seconds: float
    pending_sweep_delay_minutes: int
    pending_sweep_batch_size: int
    max_delivery_attempts: int
    notification_retention_days: int
    # App settings
    secret_key: str
    log_level: str
    debug_mode: bool
    cors_allowed_origins: list[str]
    # JWT settings
    jwt_access_token_expires_hours: int

    def get_int(self, key: str, default: int = 0) -> int:
        value = getattr(self, key, default)
        if isinstance(value, str):
            try:
                return int(value)
            except ValueError:
                return default
        return value if isinstance(value, int) else default

    @property
    def sqlalchemy_uri(self) -> str:
        """
        Build the SQLAlchemy URI for the relational store.

        DATABASE_URL wins when present (Supabase connection string or a local
        sqlite file); otherwise the POSTGRES_* parts are assembled with psycopg2
        as the driver.
        """
        if self.database_url:
            return self.database_url
        ssl_arg = f"?sslmode={self.db_sslmode}" if self.db_sslmode else ""
        return (
            f"postgresql+psycopg2://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}{ssl_arg}"
        )


def _read_env(name: str, default: str | None = None) -> str:
    """
    Internal helper to fetch environment variables with support for defaults.
    """
    value = os.getenv(name)
    if value is None:
        if default is None:
            raise RuntimeError(f"Missing required environment variable '{name}'")
        value = default
    return value


def read_bool(name: str, default: str = "false") -> bool:
    value = _read_env(name, default)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _read_list(name: str) -> list[str]:
    raw = _read_env(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def validate_required_env_vars(skip_in_debug: bool = False) -> None:
    """
    Validate that all required environment variables are set.

    Fails fast during startup and reports every problem at once.

    Args:
        skip_in_debug: If True, skip validation when DEBUG_MODE=true

    Raises:
        RuntimeError: If any required variable is missing or has an invalid value
    """
    if skip_in_debug and read_bool("DEBUG_MODE", "false"):
        return

    errors = []

    secret_key = os.getenv("SECRET_KEY", "")
    if not secret_key or secret_key in ["change-me-please", "super-secret-change-me"]:
        errors.append(
            "SECRET_KEY must be configured with a secure random value. "
            'Generate with: python3 -c "import secrets; print(secrets.token_urlsafe(32))"'
        )

    if not os.getenv("DATABASE_URL"):
        for name in ("POSTGRES_HOST", "POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_DB"):
            if not os.getenv(name):
                errors.append(f"{name} must be configured (or set DATABASE_URL)")

    provider = os.getenv("EMAIL_PROVIDER", "resend").strip().lower()
    if provider not in {"resend", "sendgrid", "supabase"}:
        errors.append(f"EMAIL_PROVIDER must be resend, sendgrid or supabase, got: {provider}")
    elif provider in {"resend", "sendgrid"}:
        if not (os.getenv("EMAIL_API_KEY") or os.getenv("RESEND_API_KEY")):
            errors.append(f"EMAIL_API_KEY must be configured for the '{provider}' provider")
    elif not (os.getenv("SUPABASE_URL") and os.getenv("SUPABASE_SERVICE_ROLE_KEY")):
        errors.append("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required by the supabase provider")

    for name in ("JWT_ACCESS_TOKEN_EXPIRES_HOURS", "MAX_DELIVERY_ATTEMPTS"):
        raw = os.getenv(name, "")
        if raw:
            try:
                int(raw)
            except ValueError:
                errors.append(f"{name} must be a valid integer, got: {raw}")

    if errors:
        error_msg = "\nConfiguration Errors - Missing or invalid environment variables:\n"
        for error in errors:
            error_msg += f"  - {error}\n"
        raise RuntimeError(error_msg)


def load_config(app_name: str) -> AppConfig:
    """
    Produce an AppConfig instance populated from environment variables.

    The values are read once; callers keep the returned object for the
    lifetime of the process.
    """
    return AppConfig(
        app_name=app_name,
        database_url=_read_env("DATABASE_URL", ""),
        db_host=_read_env("POSTGRES_HOST", "localhost"),
        db_port=int(_read_env("POSTGRES_PORT", "5432")),
        db_user=_read_env("POSTGRES_USER", "postgres"),
        db_password=_read_env("POSTGRES_PASSWORD", "postgres"),
        db_name=_read_env("POSTGRES_DB", "postgres"),
        db_sslmode=_read_env("POSTGRES_SSLMODE", "require"),
        supabase_url=_read_env("SUPABASE_URL", ""),
        supabase_anon_key=_read_env("SUPABASE_ANON_KEY", ""),
        supabase_service_role_key=_read_env("SUPABASE_SERVICE_ROLE_KEY", ""),
        email_provider=_read_env("EMAIL_PROVIDER", "resend").strip().lower(),
        email_api_key=_read_env("EMAIL_API_KEY", _read_env("RESEND_API_KEY", "")),
        email_from=_read_env("EMAIL_FROM", "noreply@stadium.com"),
        email_from_name=_read_env("EMAIL_FROM_NAME", "Stadium Hospitality Manager"),
        email_function_name=_read_env("EMAIL_FUNCTION_NAME", "send-email"),
        notification_delay_seconds=float(_read_env("NOTIFICATION_DELAY_SECONDS", "0.1")),
        pending_sweep_delay_minutes=int(_read_env("PENDING_SWEEP_DELAY_MINUTES", "5")),
        pending_sweep_batch_size=int(_read_env("PENDING_SWEEP_BATCH_SIZE", "10")),
        max_delivery_attempts=int(_read_env("MAX_DELIVERY_ATTEMPTS", "5")),
        notification_retention_days=int(_read_env("NOTIFICATION_RETENTION_DAYS", "90")),
        secret_key=_read_env("SECRET_KEY", "super-secret-change-me"),
        log_level=_read_env("LOG_LEVEL", "INFO"),
        debug_mode=read_bool("DEBUG_MODE", "false"),
        cors_allowed_origins=_read_list("CORS_ALLOWED_ORIGINS"),
        jwt_access_token_expires_hours=int(_read_env("JWT_ACCESS_TOKEN_EXPIRES_HOURS", "12")),
    )
