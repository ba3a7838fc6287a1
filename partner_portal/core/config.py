"""Configuration management for the Partner Portal PDF service."""

from functools import lru_cache
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ===========================================
    # Supabase Configuration
    # ===========================================
    SUPABASE_URL: str = Field(default="", description="Supabase project URL")
    SUPABASE_KEY: str = Field(default="", description="Supabase service key")

    # ===========================================
    # Gemini Configuration (document drafting)
    # ===========================================
    GEMINI_API_KEY: str = Field(default="", description="Google Gemini API key")
    GEMINI_MODEL: str = Field(default="gemini-2.5-pro", description="Model used for drafting")
    GEMINI_API_URL: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL"
    )
    AI_DRAFTING_ENABLED: bool = Field(
        default=True,
        description="Run the drafting pass before PDF export"
    )
    AI_DRAFTING_TIMEOUT: float = Field(
        default=120.0,
        description="Seconds to wait for the drafting pass before using original content"
    )

    # ===========================================
    # Document Configuration
    # ===========================================
    WATERMARK_TEXT: str = Field(default="CONFIDENTIAL", description="Text stamped on every page")
    CURRENCY_LOCALE: str = Field(default="en_US", description="Locale for money and dates")
    PDF_OUTPUT_DIR: str = Field(
        default="./output/proposals",
        description="Directory for save-to-file exports"
    )

    # ===========================================
    # Server Configuration
    # ===========================================
    DEBUG: bool = Field(default=True, description="Debug mode")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
