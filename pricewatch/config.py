"""
PriceWatch Configuration
Settings for scraping, scheduling and alerting
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "PriceWatch"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    SECRET_KEY: str = "change-me-in-production-use-openssl-rand-hex-32"

    # Database
    DATABASE_URL: str = "sqlite:///./pricewatch.db"

    # Authentication
    API_KEY_HEADER: str = "X-API-Key"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    CHECK_INTERVAL_SECONDS: int = 3600  # 1 hour default
    MAX_CONCURRENT_CHECKS: int = 5

    # Rate Limiting
    RATE_LIMIT_CHECKS: str = "20/minute"

    # Scraping
    SCRAPE_TIMEOUT_SECONDS: float = 15.0
    SCRAPE_MAX_REDIRECTS: int = 5
    SCRAPE_USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    SCRAPE_ACCEPT_LANGUAGE: str = "en-IN,en;q=0.9"

    # Watchlist defaults
    DEFAULT_CURRENCY: str = "INR"
    DEFAULT_DROP_THRESHOLD: float = 5.0


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
