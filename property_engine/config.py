"""
Configuration settings using Pydantic.

Loads settings from environment variables (prefix ``ENGINE_``) and a
``.env`` file. Scoring tables, phase durations and trade costs are
module constants, not settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "127.0.0.1"
    port: int = 8080

    # Assessment
    default_city: str = "Munich"  # Used when a snapshot has no city


settings = Settings()
