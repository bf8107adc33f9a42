"""
Configuration settings for the Jobsite coordination service.
All sensitive values are loaded from environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Jobsite Coordination"
    debug: bool = Field(default=False)
    environment: str = Field(default="production")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Storage
    storage_backend: str = Field(default="memory")  # memory, sql, redis
    storage_prefix: str = Field(default="jobsite:")
    database_url: str = Field(default="sqlite+aiosqlite:///./jobsite.db")
    database_echo: bool = Field(default=False)
    redis_url: str = Field(default="redis://localhost:6379")

    # Daily log parsing (OpenAI-compatible endpoint)
    llm_api_key: str = Field(default="")
    llm_base_url: str = Field(default="https://api.deepseek.com/v1")
    llm_model: str = Field(default="deepseek-chat")
    llm_max_tokens: int = Field(default=1024)
    parse_min_length: int = Field(default=50)

    # Daily log editor
    autosave_debounce_seconds: float = Field(default=2.0)
    timezone: str = Field(default="America/New_York")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the application settings."""
    return settings
