from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Local Listings API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 8

    ADMIN_SECRET_KEY: str = "change-this-admin-secret"

    # Shared secrets for machine callers (cron runner, payment webhook).
    # Empty CRON_SECRET skips the check, which is only meant for local dev.
    CRON_SECRET: str = ""
    PAYMENT_WEBHOOK_SECRET: str = "change-this-webhook-secret"
    CHECKOUT_BASE_URL: str = "https://checkout.example.com/pay"
    WEB_BASE_URL: str = "http://localhost:3000"

    # Moderation / engagement limits
    FLAG_THRESHOLD: int = 3
    MAX_PINNED_POSTS: int = 3

    # Background sweep (seconds between runs, 0 disables it)
    EXPIRY_SWEEP_SECONDS: int = 3600
    DRAFT_RETENTION_DAYS: int = 30

    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "12345"
    POSTGRES_DB: str = "local_listings"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
