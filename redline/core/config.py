"""Application configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: Optional[str] = None

    # Analysis depths
    HIGH_DEPTH_MODEL: str = "gpt-4o"
    HIGH_DEPTH_JSON_MODE: bool = True
    FAST_DEPTH_MODEL: str = "gpt-4o-mini"
    FAST_DEPTH_JSON_MODE: bool = True

    # LLM call behaviour
    LLM_TEMPERATURE: float = 0.1
    LLM_TIMEOUT_S: float = 60.0
    LLM_MAX_ATTEMPTS: int = 1
    LLM_MAX_CHARS: int = 8000
    LLM_MAX_CONCURRENCY: int = 16

    # Region diffing and triage
    SMALL_CHANGE_THRESHOLD: int = 100
    CONTEXT_BREAK_LINES: int = 5
    CONTEXT_LINES: int = 2

    # Temporal
    TEMPORAL_ADDRESS: str = "temporal:7233"
    TEMPORAL_NAMESPACE: str = "default"
    WORKER_TASK_QUEUE: str = "comparison-queue"
    COMPARISON_TIMEOUT_S: int = 1800

    # Application
    APP_NAME: str = "Redline - Contract Version Comparison"
    APP_ENV: str = "dev"
    MAX_TEXT_CHARS: int = 2_000_000

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


# Global settings instance
settings = Settings()
