"""Configuration for serving-time dedup and ranking."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PAID_SOURCE_DOMAINS = [
    "bizjournals.com",
    "courier-journal.com",
    "dailyindependent.com",
    "franklinfavorite.com",
    "kentucky.com",
    "kentuckynewera.com",
    "messenger-inquirer.com",
    "news-expressky.com",
    "paducahsun.com",
    "richmondregister.com",
    "salyersvilleindependent.com",
    "state-journal.com",
    "thenewsenterprise.com",
    "timesleader.net",
]


class RankingConfig(BaseSettings):
    """Settings for the serving-time ranking engine."""

    model_config = SettingsConfigDict(
        env_prefix="RANKING_",
        case_sensitive=False,
        extra="ignore",
    )

    paid_source_domains: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PAID_SOURCE_DOMAINS),
        description="Paywalled hosts; subdomains match too",
    )
    overfetch_multiplier: int = Field(default=4, ge=1)
    max_pool_size: int = Field(default=400, ge=1)
    min_words: int = Field(
        default=0,
        ge=0,
        description="Drop items whose summary and body are both shorter (0 = off)",
    )
    paid_cap: int | None = Field(
        default=None,
        ge=0,
        description="Most paid-source items per page when free items exist (None = no cap)",
    )
