from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DEBUG: bool = False
    APP_NAME: str = "storefront"
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/storefront.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Tenant used when a request carries no X-Store-Id header
    STORE_ID: str = ""

    # Payment processor
    stripe_api_key: str = ""
    stripe_webhook_secret: str = ""

    # SMTP
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM_EMAIL: str = "no-reply@example.com"
    SMTP_FROM_NAME: str = "Store"

    # Signed download URLs
    ASSET_SIGNING_SECRET: str = ""
    ASSET_BASE_URL: str = "https://files.example.com/product-files"
    DOWNLOAD_URL_TTL_SECONDS: int = 3600

    # Gift cards (amounts in cents)
    GIFT_CARD_DENOMINATIONS: list[int] = [2500, 5000, 10000, 20000]
    GIFT_CARD_EMAIL_RETRY_AFTER_MINUTES: int = 10

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Rate limiting for public code validation
    RATE_LIMIT_VALIDATIONS_PER_MINUTE: int = 60

    @property
    def version(self) -> str:
        return "0.1.0"

    @property
    def smtp_enabled(self) -> bool:
        return bool(self.SMTP_HOST)


settings = Settings()
