"""Configuration values for the stockwhisperer package."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    log_level: str = Field("INFO", description="Log level")

    reply_delay_seconds: float = Field(
        1.0, ge=0, description="Simulated bot typing delay before a reply lands"
    )
    history_days: int = Field(
        150, gt=0, description="Calendar days of mock history per symbol"
    )
    realtime_points: int = Field(
        60, gt=0, description="Synthetic one-minute ticks generated per symbol"
    )

    ai_enabled: bool = Field(
        False, description="Load Hugging Face models and enrich chat replies"
    )
    sentiment_model: str = Field(
        "finiteautomata/bertweet-base-sentiment-analysis",
        description="Hugging Face model used for sentiment classification",
    )
    generation_model: str = Field(
        "distilgpt2", description="Hugging Face model used for text generation"
    )
    generation_max_length: int = Field(100, gt=0)
    generation_temperature: float = Field(0.7, gt=0)
    generation_top_p: float = Field(0.9, gt=0, le=1)

    sentry_dsn: str | None = Field(None, description="Sentry DSN (disabled if unset)")
    sentry_environment: str = Field("production", description="Sentry environment")
    sentry_traces_sample_rate: float = Field(0.0, ge=0, le=1)


settings = Settings()
