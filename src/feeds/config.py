"""Configuration for the feeds service."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeedsConfig(BaseSettings):
    """Settings for feed source management and polling."""

    model_config = SettingsConfigDict(
        env_prefix="FEEDS_",
        case_sensitive=False,
        extra="ignore",
    )

    seed_on_init: bool = Field(
        default=True,
        description="Automatically seed from JSON on first init if table is empty",
    )
    error_body_chars: int = Field(
        default=220,
        ge=0,
        description="Response body characters kept in feed fetch errors",
    )
