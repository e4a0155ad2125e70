"""Configuration for article enrichment fetches."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnrichmentConfig(BaseSettings):
    """Settings for the article enrichment fetcher."""

    model_config = SettingsConfigDict(
        env_prefix="ENRICHMENT_",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(
        default=True,
        description="Fetch article pages when feed text yields no county",
    )
    timeout_seconds: float = Field(default=12.0, gt=0.0, le=120.0)
    max_html_chars: int = Field(
        default=2_000_000,
        ge=1_000,
        description="HTML characters read before parsing; the rest is dropped",
    )
    excerpt_max_chars: int = Field(default=10_000, ge=100)
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; KentuckyNewsBot/1.0; +https://localkynews.com)",
    )
