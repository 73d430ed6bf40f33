# recurrence_engine/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global engine configuration.

    Values are loaded from environment variables at runtime.

    None of these values change which dates a series occurs on; they only
    affect defaults at the edges:
    - wire payload time zone
    - summary day ordering
    - logging and cache sizing
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "Recurrence Engine"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")

    DEFAULT_RECURRENCE_TIME_ZONE: str = Field(
        "Eastern Standard Time",
        description="Time zone written to range.recurrenceTimeZone when none is given.",
    )
    DEFAULT_FIRST_DAY_OF_WEEK: str = Field(
        "sunday",
        description="Day that starts the week when ordering day abbreviations in summaries.",
    )

    LOG_LEVEL: str = Field(
        "INFO",
        description="Level applied to the recurrence_engine logger by configure_logging().",
    )

    EXPANSION_CACHE_SIZE: int = Field(
        256,
        ge=1,
        description="Default number of memoized expansions kept by ExpansionCache.",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for engine settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the package.
    """
    return Settings()
