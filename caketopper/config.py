from functools import lru_cache
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the cake topper backend."""

    #----------------------------------------------------------
    # External API settings
    #----------------------------------------------------------
    gemini_api_key: SecretStr = Field(
        default="",
        description="API key for the Gemini image API. Falls back to GEMINI_API_KEY / GOOGLE_API_KEY when empty.",
    )

    image_model_id: str = Field(
        default="gemini-2.5-flash-image",
        description="Gemini model id used for image generation.",
    )

    #----------------------------------------------------------
    # Retry policy
    #----------------------------------------------------------
    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Maximum number of generation attempts per request.",
    )
    backoff_base_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Delay after the first failed attempt; doubles after every further failure.",
    )
    request_timeout_seconds: float = Field(
        default=120.0,
        gt=0.0,
        description="Upper bound for a single request to the image API.",
    )

    #----------------------------------------------------------
    # Input limits
    #----------------------------------------------------------
    max_image_bytes: int = Field(
        default=10 * 1024 * 1024,
        gt=0,
        description="Largest accepted reference image, in bytes.",
    )
    max_text_length: int = Field(
        default=100,
        gt=0,
        description="Longest accepted name or age text.",
    )

    model_config = SettingsConfigDict(
        env_prefix="CAKETOPPER_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
