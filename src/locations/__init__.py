"""Locations: gazetteer matching and item location tagging."""

from src.locations.config import LocationConfig
from src.locations.gazetteer import Gazetteer, get_gazetteer, normalize
from src.locations.schemas import LocationMatch, TaggingResult
from src.locations.tagger import LocationTagger

__all__ = [
    "Gazetteer",
    "LocationConfig",
    "LocationMatch",
    "LocationTagger",
    "TaggingResult",
    "get_gazetteer",
    "normalize",
]
