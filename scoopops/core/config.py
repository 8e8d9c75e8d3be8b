from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "ScoopOps"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/scoopops.db"
    REDIS_URL: str = "redis://localhost:6379"

    # Auth
    JWT_SECRET: str = "change-me"
    ACCESS_TOKEN_TTL_MINUTES: int = 60 * 24
    REFRESH_TOKEN_TTL_DAYS: int = 30
    SESSION_COOKIE_NAME: str = "scoopops_session"
    CRON_SECRET: str = ""

    # Payment providers
    stripe_api_key: str = ""
    stripe_webhook_secret: str = ""
    manual_webhook_secret: str = ""

    # Payment retry policy
    PAYMENT_MAX_RETRIES: int = 3
    PAYMENT_RETRY_INTERVAL_DAYS: int = 3
    REFERRAL_REWARD_AMOUNT: float = 5.00

    # Service credits: one initial cleanup plus the first period, then per paid period
    SERVICE_CREDITS_INITIAL: int = 5
    SERVICE_CREDITS_PER_PERIOD: int = 4

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Rate limiting (requests per window, window in seconds)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_LOGIN_REQUESTS: int = 5
    RATE_LIMIT_LOGIN_WINDOW: int = 5 * 60
    RATE_LIMIT_REFRESH_REQUESTS: int = 30
    RATE_LIMIT_REFRESH_WINDOW: int = 5 * 60
    RATE_LIMIT_SIGNUP_REQUESTS: int = 3
    RATE_LIMIT_SIGNUP_WINDOW: int = 60 * 60
    RATE_LIMIT_DEFAULT_REQUESTS: int = 10
    RATE_LIMIT_DEFAULT_WINDOW: int = 5 * 60

    # Email (SMTP)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM_EMAIL: str = "no-reply@example.com"
    SMTP_FROM_NAME: str = "ScoopOps"
    ADMIN_EMAIL: str = ""

    # Coverage risk
    COVERAGE_HIGH_PRIORITY_MIN_CUSTOMERS: int = 3
    COVERAGE_NOTIFY_CUSTOMERS: bool = False
    COVERAGE_REPORT_CACHE_SECONDS: int = 300

    # Geocoding (Nominatim-compatible search endpoint)
    GEOCODING_URL: str = ""
    GEOCODING_USER_AGENT: str = "scoopops/0.1"
    GEOCODING_COUNTRY_CODE: str = "us"

    @property
    def geocoding_enabled(self) -> bool:
        return bool(self.GEOCODING_URL)


settings = Settings()
