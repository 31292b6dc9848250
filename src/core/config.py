"""Application configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PAYDUNYA_LIVE_URL = "https://app.paydunya.com/api/v1"
PAYDUNYA_SANDBOX_URL = "https://app.paydunya.com/sandbox-api/v1"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="allsale-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,https://allsale.sn",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    storage_bucket: str = Field(default="product-images", description="Supabase Storage bucket for uploaded images")
    storage_public_url: str = Field(default="", description="Public base URL of the image bucket")

    # PayDunya
    paydunya_mode: Literal["test", "live"] = Field(default="test", description="PayDunya sandbox or live API")
    paydunya_master_key: str = Field(default="", description="PayDunya master key (also authenticates IPN callbacks)")
    paydunya_private_key: str = Field(default="", description="PayDunya private key")
    paydunya_token: str = Field(default="", description="PayDunya API token")
    paydunya_timeout_seconds: float = Field(default=30.0, description="Timeout for a single PayDunya API call")

    # Store metadata shown on hosted invoices
    store_name: str = Field(default="AllSale", description="Store name on invoices")
    store_tagline: str = Field(default="Votre marketplace au Sénégal", description="Store tagline on invoices")
    store_phone: str = Field(default="+221000000000", description="Store phone on invoices")
    store_postal_address: str = Field(default="Dakar, Sénégal", description="Store postal address on invoices")

    # Admin
    admin_api_key: str = Field(default="", description="Shared secret for X-Admin-API-Key")

    # URLs
    frontend_url: str = Field(default="http://localhost:3000", description="Storefront URL")
    backend_url: str = Field(
        default="",
        description="Public base URL of this API, used for payment callbacks (derived from the request when empty)",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def paydunya_base_url(self) -> str:
        """PayDunya API base URL for the configured mode."""
        return PAYDUNYA_LIVE_URL if self.paydunya_mode == "live" else PAYDUNYA_SANDBOX_URL


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
