from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings, read from HERITAGEFLOW_* environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="HERITAGEFLOW_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # Provider access keeps the unprefixed names the Gemini tooling uses
    api_key: str = Field(default="", validation_alias=AliasChoices("GEMINI_API_KEY", "API_KEY", "api_key"))
    gemini_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        validation_alias=AliasChoices("GEMINI_BASE", "gemini_base"),
    )

    text_model: str = "gemini-3-flash-preview"
    image_model: str = "gemini-2.5-flash-image"
    slide_count: int = Field(default=8, ge=1)
    language: str = "Chinese (Simplified)"
    aspect_ratio: str = "16:9"
    timeout: float = Field(default=60.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper()
