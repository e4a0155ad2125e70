"""Configuration for location tagging."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LocationConfig(BaseSettings):
    """Settings for the location tagger."""

    model_config = SettingsConfigDict(
        env_prefix="LOCATION_",
        case_sensitive=False,
        extra="ignore",
    )

    # Feed default county precedence:
    #   in_region: unless the text looks like another state's story
    #   signal_only: only with a Kentucky signal or a county match
    #   always: unless the item was suppressed
    #   never: feed defaults are ignored
    default_county_policy: Literal["in_region", "signal_only", "always", "never"] = (
        "in_region"
    )

    aggregator_feed_patterns: list[str] = Field(
        default=[
            r"news\.google\.com/rss/search",
            r"bing\.com/news/search",
        ],
        description="Regexes for feed URLs whose items are never suppressed",
    )
    text_char_limit: int = Field(
        default=20_000,
        ge=1_000,
        description="Characters of searchable text fed to the gazetteer",
    )
