"""
Configuration management for the POS sync service.

Values come from environment variables or a local ``.env`` file. POS
connection credentials are stored per shop in the database, not here.
"""

from typing import Optional
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


KNOWN_ENVIRONMENTS = ("development", "testing", "staging", "production")


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False,
        extra="ignore",
    )

    # Database Configuration
    database_url: str = "sqlite:///./pos_sync.db"

    # Environment Settings
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # CloudPOS API
    CLOUDPOS_BASE_URL: str = "https://cloudpos.be/api/v2/"
    CLOUDPOS_HTTP_TIMEOUT_SECONDS: float = 30.0
    CLOUDPOS_DEFAULT_TAX_RATE: int = 21

    # Order push
    CLOUDPOS_SHIPPING_PRODUCT_NAME: str = "Shipping Cost"
    CLOUDPOS_SHIPPING_CATEGORY_ID: Optional[int] = None  # None keeps it out of catalog pulls
    CLOUDPOS_GUEST_EMAIL: str = "guest@pos-sync.local"
    CLOUDPOS_GUEST_FIRST_NAME: str = "Guest"
    CLOUDPOS_CASH_PROVIDER_MARKER: str = "cash"

    @field_validator("CLOUDPOS_BASE_URL")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        """Endpoints are appended directly to the base URL."""
        return v if v.endswith("/") else v + "/"

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        if v.lower() not in KNOWN_ENVIRONMENTS:
            raise ValueError(
                f"environment must be one of {', '.join(KNOWN_ENVIRONMENTS)}"
            )
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Returns:
        Settings instance with environment variables loaded
    """
    return Settings()


# Export settings instance for easy import
settings = get_settings()
