"""Application configuration management using Pydantic Settings."""

from decimal import Decimal
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


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
    app_name: str = Field(default="storefront-checkout", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")
    max_request_body_size: int = Field(default=1_048_576, description="Maximum request body size in bytes")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase (products table / price ledger)
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")

    # Stripe
    stripe_secret_key: str = Field(default="", description="Stripe secret API key")
    stripe_currency: str = Field(default="eur", description="Checkout currency (ISO 4217, lower case)")
    stripe_return_url: str = Field(
        default="http://localhost:3000",
        description="Fallback base URL for the embedded checkout return page",
    )
    checkout_locale: str = Field(default="de", description="Locale of the embedded checkout")
    shipping_allowed_countries: str = Field(
        default="DE",
        description="Comma-separated list of countries shipping is offered to",
    )

    # Meta Conversions API
    meta_pixel_id: str = Field(default="", description="Meta pixel (dataset) ID")
    meta_capi_token: str = Field(default="", description="Meta Conversions API access token")
    meta_graph_url: str = Field(default="https://graph.facebook.com", description="Meta Graph API base URL")
    meta_graph_api_version: str = Field(default="v19.0", description="Meta Graph API version")

    # UTMify order attribution
    utmify_api_token: str = Field(
        default="",
        validation_alias=AliasChoices("utmify_api_token", "utmify_token"),
        description="UTMify API token (UTMIFY_API_TOKEN or UTMIFY_TOKEN)",
    )
    utmify_api_url: str = Field(
        default="https://api.utmify.com.br/api-credentials/orders",
        description="UTMify orders endpoint",
    )
    utmify_platform: str = Field(default="Stripe", description="Platform name reported for storefront orders")
    utmify_billing_currency: str = Field(default="BRL", description="Currency UTMify expects amounts in")

    # Exchange rates
    exchange_rate_url: str = Field(
        default="https://economia.awesomeapi.com.br/json/last",
        description="Exchange rate service base URL",
    )
    fallback_exchange_rate: Decimal = Field(
        default=Decimal("6.0"),
        description="Rate used when the exchange rate service is unavailable",
    )

    # Outbound HTTP
    outbound_timeout_seconds: float = Field(default=10.0, description="Timeout for every outbound HTTP call")

    # Hotmart webhook
    hotmart_hottok: str = Field(default="", description="Shared token Hotmart sends in X-HOTMART-HOTTOK")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def shipping_countries_list(self) -> list[str]:
        """Parse allowed shipping countries into a list."""
        return [c.strip().upper() for c in self.shipping_allowed_countries.split(",") if c.strip()]

    @property
    def is_stripe_test_mode(self) -> bool:
        """Check if using Stripe test keys."""
        return self.stripe_secret_key.startswith("sk_test_")

    @property
    def meta_capi_enabled(self) -> bool:
        """Check if the Meta Conversions API credential pair is configured."""
        return bool(self.meta_pixel_id and self.meta_capi_token)

    @property
    def utmify_enabled(self) -> bool:
        """Check if the UTMify token is configured."""
        return bool(self.utmify_api_token)


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
