"""
Central configuration. The Gemini credential and model settings in one place.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Environment ---
    env: str = Field(default="development", alias="ENV")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    debug: bool = Field(default=False, alias="DEBUG")

    # --- Gemini ---
    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    analysis_model: str = Field(default="gemini-2.5-flash", alias="ANALYSIS_MODEL")
    edit_model: str = Field(default="gemini-2.5-flash-image", alias="EDIT_MODEL")
    pro_image_model: str = Field(default="gemini-3-pro-image-preview", alias="PRO_IMAGE_MODEL")
    pro_aspect_ratio: str = Field(default="3:4", alias="PRO_ASPECT_RATIO")
    pro_generation_delay: float = Field(default=2.0, alias="PRO_GENERATION_DELAY")

    # --- Uploads ---
    max_upload_bytes: int = Field(default=20 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")

    # --- API ---
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")


@lru_cache
def get_settings() -> Settings:
    return Settings()
