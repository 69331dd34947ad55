"""
Finsolvz Backend — Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before the app starts.

Environment variable names (MONGO_URI, JWT_SECRET, NODEMAILER_EMAIL, ...)
match the existing deployment `.env` files.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Security-sensitive values (MONGO_URI, JWT_SECRET, mail credentials) have
    empty defaults; the features depending on them fail with a structured
    configuration error when they are used unset.
    """

    # ── Application ───────────────────────────────────────────────────────
    # What: Deployment environment name
    # "development" exposes internal error text in 5xx response details;
    # "production" refuses to start without a working database and JWT secret
    app_env: str = Field(default="production")

    # What: Text returned by the health check at GET /
    greeting: str = Field(default="✨ Finsolvz Backend API ✨")

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    # ── Database ──────────────────────────────────────────────────────────
    # What: MongoDB connection string (mongodb:// or mongodb+srv://)
    mongo_uri: str = Field(default="", description="MongoDB connection URI")
    mongo_db_name: str = Field(default="Finsolvz")

    # Pool bounds handed straight to the driver; the app never manages
    # connections itself.
    mongo_max_pool_size: int = Field(default=10, ge=1, le=500)
    mongo_min_pool_size: int = Field(default=0, ge=0, le=100)
    mongo_max_idle_time_ms: int = Field(default=30_000, ge=0)
    mongo_connect_timeout_ms: int = Field(default=10_000, ge=100)

    # ── Authentication ────────────────────────────────────────────────────
    # What: HMAC secret for HS256 access tokens
    # Required: YES — login and every authenticated route depend on it
    jwt_secret: str = Field(default="")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expire_days: int = Field(default=7, ge=1, le=365)

    # What: Lifetime of the reset token issued by forgot-password
    reset_token_ttl_minutes: int = Field(default=60, ge=5, le=1440)

    # ── Email (password reset) ────────────────────────────────────────────
    smtp_host: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587, ge=1, le=65535)
    nodemailer_email: str = Field(default="")
    nodemailer_pass: str = Field(default="")
    email_retry_attempts: int = Field(default=3, ge=1, le=10)

    # ── Assets ────────────────────────────────────────────────────────────
    # What: Prefix for company profile pictures stored as relative paths
    asset_base_url: str = Field(default="http://localhost:8787")

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8787, ge=1, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Request Limits ────────────────────────────────────────────────────
    # What: Hard cap on request body size (10 MiB) and per-request deadline
    max_request_body_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)
    request_timeout_seconds: float = Field(default=30.0, gt=0, le=600)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # What: Per-IP fixed-window limit, requests per one-minute window
    rate_limit_requests: int = Field(default=100, ge=1, le=100_000)
    rate_limit_window: int = Field(default=60, ge=1, le=3600)  # seconds

    # ── In-Memory Cache ───────────────────────────────────────────────────
    cache_ttl_seconds: float = Field(default=300.0, gt=0)
    cache_sweep_interval_seconds: float = Field(default=60.0, gt=0)

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # MONGO_URI and mongo_uri both work
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every missing value and raises one ValueError.
        """
        errors = []
        if not self.mongo_uri:
            errors.append("MONGO_URI is not set.")
        if not self.jwt_secret:
            errors.append("JWT_SECRET is not set. Tokens cannot be issued or verified.")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance — imported throughout the application
settings = Settings()
