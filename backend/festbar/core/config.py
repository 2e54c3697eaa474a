"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly. Venue-level options that staff
change during an event (auto-hide window, counters, PIN protection) live in
the settings document in the database, not here.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MASTER_PASSWORD = "change-me-master-password"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Database - SQLite file next to the working directory by default
    database_url: str = "sqlite:///./festbar.db"

    # Master password used to reset a forgotten admin PIN
    master_password: str = DEFAULT_MASTER_PASSWORD

    # CORS - comma-separated origins or "*" for development only
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    # ==========================================================================
    # Order board
    # ==========================================================================
    default_order_auto_hide_minutes: int = 6  # 0 = orders never expire
    alert_tick_seconds: float = 10.0  # how often live boards are re-rendered
    waiter_call_cooldown_seconds: int = 300  # one waiter call per table per 5 minutes

    # ==========================================================================
    # Push notifications (Firebase Cloud Messaging)
    # ==========================================================================
    firebase_credentials_path: Optional[str] = None
    fcm_token_max_age_hours: int = 24

    # Guest pages, used for table QR codes
    public_base_url: str = "http://localhost:3000"

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Rate limiting
    rate_limit_enabled: bool = True

    @field_validator("master_password")
    @classmethod
    def validate_master_password(cls, v: str) -> str:
        if v == DEFAULT_MASTER_PASSWORD:
            import warnings
            warnings.warn(
                "Using default MASTER_PASSWORD is insecure! Set MASTER_PASSWORD environment variable.",
                UserWarning,
                stacklevel=2,
            )
        return v

    @field_validator("default_order_auto_hide_minutes")
    @classmethod
    def validate_auto_hide(cls, v: int) -> int:
        if v < 0:
            raise ValueError("default_order_auto_hide_minutes must be >= 0 (0 = never expire)")
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Refuse insecure defaults outside debug mode."""
        if not self.debug and self.master_password == DEFAULT_MASTER_PASSWORD:
            raise ValueError(
                "FATAL: Cannot start in production mode with default MASTER_PASSWORD. "
                "Set a MASTER_PASSWORD environment variable."
            )
        return self

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
