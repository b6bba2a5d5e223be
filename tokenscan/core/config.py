from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Database
    DATABASE_URL: str = "sqlite:///./tokenscan.db"

    # Provider API keys (providers without a key are not registered)
    MORALIS_API_KEY: str | None = None
    GOPLUS_API_KEY: str | None = None
    WEBACY_API_KEY: str | None = None
    COINGECKO_API_KEY: str | None = None
    COINMARKETCAP_API_KEY: str | None = None
    APIFY_API_KEY: str | None = None
    GITHUB_API_KEY: str | None = None
    TELEGRAM_BOT_TOKEN: str | None = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    SLACK_WEBHOOK_URL: str | None = None

    # Scan pipeline
    SCAN_DEADLINE_SECONDS: float = 25.0
    PROVIDER_TIMEOUT_SECONDS: float = 10.0
    CACHE_TTL_SECONDS: int = 24 * 60 * 60

    # Scheduled refresh of every cached token
    REFRESH_ENABLED: bool = False
    REFRESH_INTERVAL_SECONDS: int = 7 * 24 * 60 * 60
    REFRESH_DELAY_SECONDS: float = 3.0

    # Run Alembic migrations on startup
    MIGRATE_ON_STARTUP: bool = True

    # Docs Configuration
    DOCS_ENABLED: bool | None = None  # Override docs setting (None = auto based on ENV)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENV == "dev"

    @property
    def debug_enabled(self) -> bool:
        """Debug mode is only enabled in development."""
        return self.is_development

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        """Swagger/ReDoc docs enabled based on environment or override."""
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return self.is_development


settings = Settings()
