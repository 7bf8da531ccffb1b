"""
Central feature flags.

Set via environment variables (prefix FF_) or .env file.
When a flag is ON, the matching Gemini call is replaced by a local stand-in.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Pro generation ───────────────────────────────────────────────
    mock_pro_generation: bool = Field(default=True, alias="FF_MOCK_PRO_GENERATION")
    # ON  → "Pro Style" waits PRO_GENERATION_DELAY seconds and hands back the
    #       current photo unchanged. No paid model is called.
    # OFF → Calls PRO_IMAGE_MODEL (gemini-3-pro-image-preview). Needs a paid key.


@lru_cache
def get_flags() -> FeatureFlags:
    return FeatureFlags()
