from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional, Union


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = Field(default="Signal Engine", description="Application name")
    APP_VERSION: str = Field(default="0.1.0", description="Application version")
    DEBUG: bool = Field(default=False, description="Debug mode")
    ENVIRONMENT: str = Field(default="production", description="Environment")

    # Database
    DATABASE_URL: str = "sqlite:///./signal_engine.db"

    # News providers
    FINNHUB_API_KEY: Optional[str] = Field(default=None, description="Finnhub API key")
    NEWS_API_KEY: Optional[str] = Field(default=None, description="NewsAPI.org API key")
    ALPHA_VANTAGE_API_KEY: Optional[str] = Field(default=None, description="Alpha Vantage API key")
    ALPHA_VANTAGE_ENABLED: bool = Field(default=False, description="Enable Alpha Vantage news feed")
    SEC_EDGAR_CONTACT_EMAIL: Optional[str] = Field(default=None, description="Contact e-mail sent in the SEC User-Agent")
    SEC_EDGAR_ENABLED: bool = Field(default=True, description="Enable SEC EDGAR filings feed")
    ENABLED_PROVIDERS: Union[str, List[str]] = Field(
        default="finnhub,newsapi,sec_edgar,alpha_vantage",
        description="Provider names allowed to run"
    )
    PROVIDER_TIMEOUT_SECONDS: float = Field(default=15.0, description="Per-call provider timeout")
    PROVIDER_MAX_CONCURRENCY: int = Field(default=4, description="Concurrent provider calls per ticker")
    NEWS_LOOKBACK_DAYS: int = Field(default=7, description="Default lookback when no from-date is given")

    # Aggregation
    HEADLINE_DEDUP_ENABLED: bool = Field(default=False, description="Drop near-identical headlines")
    HEADLINE_SIMILARITY_THRESHOLD: float = Field(default=0.8, description="Jaccard threshold for headline clustering")

    # Alerts
    HIGH_IMPACT_THRESHOLD: float = Field(default=0.7, description="Minimum |impact| for a high-impact alert")
    ALERT_LOOKBACK_HOURS: int = Field(default=24, description="Window for alert and digest impacts")
    HIGH_IMPACT_ALERT_LIMIT: int = Field(default=5, description="Impacts listed in a high-impact alert")
    DIGEST_ALERT_LIMIT: int = Field(default=20, description="Impacts listed in a daily digest")

    # Celery Configuration
    CELERY_BROKER_URL: str = Field(default="redis://localhost:6379/0", description="Celery broker URL")
    CELERY_RESULT_BACKEND: str = Field(default="redis://localhost:6379/1", description="Celery result backend URL")
    CELERY_TASK_SERIALIZER: str = Field(default="json", description="Task serialization format")
    CELERY_RESULT_SERIALIZER: str = Field(default="json", description="Result serialization format")
    CELERY_ACCEPT_CONTENT: Union[str, List[str]] = Field(default="json", description="Accepted content types")
    CELERY_TIMEZONE: str = Field(default="UTC", description="Celery timezone")
    CELERY_ENABLE_UTC: bool = Field(default=True, description="Enable UTC timezone")
    CELERY_TASK_TIME_LIMIT: int = Field(default=1800, description="Task hard time limit in seconds")
    CELERY_TASK_SOFT_TIME_LIMIT: int = Field(default=1500, description="Task soft time limit in seconds")
    CELERY_TASK_ALWAYS_EAGER: bool = Field(default=False, description="Execute tasks eagerly (for testing)")

    # Celery Beat Schedule Configuration
    CELERY_BEAT_NEWS_FETCH_INTERVAL: int = Field(default=1800, description="News fetch interval in seconds")
    CELERY_BEAT_IMPACT_RECOMPUTE_INTERVAL: int = Field(default=3600, description="Impact recompute interval in seconds")
    CELERY_BEAT_HIGH_IMPACT_INTERVAL: int = Field(default=3600, description="High-impact alert interval in seconds")
    CELERY_BEAT_DIGEST_HOUR: int = Field(default=9, description="Daily digest hour (UTC)")
    CELERY_BEAT_DIGEST_MINUTE: int = Field(default=0, description="Daily digest minute")

    @property
    def celery_accept_content_list(self) -> List[str]:
        """Get CELERY_ACCEPT_CONTENT as a list"""
        if isinstance(self.CELERY_ACCEPT_CONTENT, str):
            return [item.strip() for item in self.CELERY_ACCEPT_CONTENT.split(',')]
        return self.CELERY_ACCEPT_CONTENT if self.CELERY_ACCEPT_CONTENT else ["json"]

    @property
    def enabled_providers_list(self) -> List[str]:
        """Get ENABLED_PROVIDERS as a list of lower-case names"""
        if isinstance(self.ENABLED_PROVIDERS, str):
            return [item.strip().lower() for item in self.ENABLED_PROVIDERS.split(',') if item.strip()]
        return [item.lower() for item in self.ENABLED_PROVIDERS]

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra environment variables


# Create settings instance
settings = Settings()
