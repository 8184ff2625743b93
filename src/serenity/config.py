"""Configuration for the Serenity backend core."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Serenity configuration settings."""

    # Storage
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/serenity.db"

    # Redis for Celery
    REDIS_URL: str = "redis://localhost:6379/0"

    # Ollama for summaries and weekly reports
    OLLAMA_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.2:3b"
    LLM_TIMEOUT_SECONDS: float = 60.0

    # Personalization analysis job
    PERSONALIZATION_ANALYSIS_INTERVAL_DAYS: int = 7
    MIN_DAYS_SINCE_ANALYSIS: int = 3
    PERSONALIZATION_JOB_INTERVAL_HOURS: int = 24
    PERSONALIZATION_JOB_RUN_ON_STARTUP: bool = False
    PERSONALIZATION_BATCH_SIZE: int = 10
    PERSONALIZATION_BATCH_DELAY_SECONDS: float = 1.0
    # Users with chat activity inside this window are analyzed
    PERSONALIZATION_ACTIVE_USER_DAYS: int = 30

    # Reminders
    JOURNAL_REMINDER_DAYS: int = 3
    INTERVENTION_REMINDER_INACTIVE_DAYS: int = 2

    # Weekly reports
    BACKGROUND_QUEUE_CONCURRENCY: int = 3
    WEEKLY_REPORT_RUN_ON_STARTUP: bool = True

    # Conversation summaries older than this are purged
    SUMMARY_RETENTION_DAYS: int = 365

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"


# Global settings instance
settings = Settings()
