"""Application configuration loaded from environment variables.

Settings for the platform API client, redirect targets, CORS and logging.
Uses pydantic-settings for validation and .env file support.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # API
    # 0.0.0.0 binds to all network interfaces (required for Docker containers)
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000

    # CORS (Security)
    # Default allows localhost:3000 for Next.js development
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Recruiting platform (job detail, templates, documents, draft endpoints)
    platform_api_url: str = "http://localhost:3000/api"
    platform_timeout_seconds: float = 10.0
    # Reads only; writes are retried by the applicant re-clicking Continue
    platform_max_retries: int = 2
    platform_retry_base_delay_ms: int = 200
    platform_retry_max_delay_ms: int = 2000

    # Frontend URL (redirect target after a successful submission)
    frontend_url: str = "http://localhost:3000"
    submitted_redirect_path: str = "/seeker/applications"

    # Version of the terms text the applicant signs
    consent_text_version: str = "v1"

    # Upper bound on live in-memory wizard sessions
    wizard_session_limit: int = 1000
    # Idle minutes before an abandoned session is closed and dropped
    wizard_session_ttl_minutes: int = 30

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate configuration invariants.

        Checks:
        - Timeout must be positive and retries non-negative (all environments)
        - CORS must not use wildcard origin (incompatible with credentials)
        - Platform URL must use HTTPS in production (Authorization is forwarded)
        """
        if self.platform_timeout_seconds <= 0:
            msg = (
                "PLATFORM_TIMEOUT_SECONDS must be positive. "
                f"Got: {self.platform_timeout_seconds}"
            )
            raise ValueError(msg)
        if self.platform_max_retries < 0:
            msg = (
                "PLATFORM_MAX_RETRIES cannot be negative. "
                f"Got: {self.platform_max_retries}"
            )
            raise ValueError(msg)
        if self.wizard_session_limit < 1:
            msg = (
                "WIZARD_SESSION_LIMIT must be at least 1. "
                f"Got: {self.wizard_session_limit}"
            )
            raise ValueError(msg)
        if self.wizard_session_ttl_minutes < 1:
            msg = (
                "WIZARD_SESSION_TTL_MINUTES must be at least 1. "
                f"Got: {self.wizard_session_ttl_minutes}"
            )
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "This application uses credentials (cookies) which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.environment == "production" and not self.platform_api_url.startswith(
            "https://"
        ):
            msg = (
                "PLATFORM_API_URL must use https:// in production. "
                "The caller's Authorization header is forwarded to it."
            )
            raise ValueError(msg)

        return self

    @property
    def submitted_redirect_url(self) -> str:
        """Where the front end goes after a successful submission."""
        return f"{self.frontend_url.rstrip('/')}{self.submitted_redirect_path}"


settings = Settings()
