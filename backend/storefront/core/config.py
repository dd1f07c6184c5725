from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "storefront"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/storefront.db"
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Rate limiting
    RATE_LIMIT_COUPON_VALIDATIONS_PER_MINUTE: int = 30

    # Coupons
    COUPON_USAGE_HISTORY_LIMIT: int = 100

    # Segments
    SEGMENT_CUSTOMERS_PAGE_SIZE: int = 20
    SEGMENT_RECALCULATION_HOUR: int = 2  # nightly bulk recalculation (UTC)

    @property
    def version(self) -> str:
        return self.APP_VERSION


settings = Settings()
