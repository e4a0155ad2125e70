"""
Gazetteer matching.

Gazetteer compiles the static place lists once and answers one
question: what places does this text mention? Matching runs on
normalized text (lowercase, every run of non-alphanumerics folded to a
single space), so "Laurel Co." and "LAUREL  county," both normalize to
a form the county pattern accepts.

Rules:
- A county only matches with a trailing "county" or "co" qualifier;
  bare "Clay" is not a county mention.
- Every county is tested; there is no early exit.
- City names are tested only when no county matched and the text
  carries an explicit Kentucky signal.
"""

import html
import re
from collections.abc import Iterable, Mapping
from functools import lru_cache

from src.config.gazetteer import (
    KY_CITY_COUNTY,
    KY_COUNTIES,
    OTHER_STATE_NAMES,
    REGION_SIGNAL_TOKENS,
)
from src.locations.schemas import LocationMatch

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize(text: str | None) -> str:
    """Lowercase and fold non-alphanumerics to single spaces."""
    if not text:
        return ""
    return _NON_ALNUM.sub(" ", html.unescape(text).lower()).strip()


def _name_pattern(name: str) -> str:
    return r"\s+".join(re.escape(part) for part in normalize(name).split())


def _longest_first(names: Iterable[str]) -> list[str]:
    return sorted(set(names), key=lambda n: (-len(n), n))


class Gazetteer:
    """
    Compiled place-name matcher for one region.

    Args:
        counties: Sub-region names in display form
        city_counties: City name -> county name
        other_regions: Names of regions that signal "not here"
        signal_tokens: Tokens that mark text as about this region
    """

    def __init__(
        self,
        counties: Iterable[str] = KY_COUNTIES,
        city_counties: Mapping[str, str] = KY_CITY_COUNTY,
        other_regions: Iterable[str] = OTHER_STATE_NAMES,
        signal_tokens: Iterable[str] = REGION_SIGNAL_TOKENS,
    ) -> None:
        self._county_patterns = [
            (name, re.compile(rf"\b{_name_pattern(name)}\s+(?:county|co)\b"))
            for name in _longest_first(counties)
        ]
        self._city_patterns = [
            (city_counties[city], re.compile(rf"\b{_name_pattern(city)}\b"))
            for city in _longest_first(city_counties)
        ]
        self._other_patterns = [
            (name, re.compile(rf"\b{_name_pattern(name)}\b"))
            for name in _longest_first(other_regions)
        ]
        signal = "|".join(_name_pattern(t) for t in signal_tokens)
        self._signal_pattern = re.compile(rf"\b(?:{signal})\b")

    @property
    def county_names(self) -> list[str]:
        return [name for name, _ in self._county_patterns]

    def find_counties(self, normalized: str) -> set[str]:
        """Direct county mentions in normalized text."""
        return {name for name, pattern in self._county_patterns if pattern.search(normalized)}

    def find_city_counties(self, normalized: str) -> set[str]:
        """Counties reached through city names in normalized text."""
        return {county for county, pattern in self._city_patterns if pattern.search(normalized)}

    def has_region_signal(self, normalized: str) -> bool:
        return bool(self._signal_pattern.search(normalized))

    def find_other_regions(self, normalized: str) -> set[str]:
        return {name for name, pattern in self._other_patterns if pattern.search(normalized)}

    def match(self, text: str | None) -> LocationMatch:
        """
        Find the places a text mentions.

        >>> Gazetteer().match("Crash in Laurel County").counties
        frozenset({'Laurel'})
        """
        normalized = normalize(text)
        if not normalized:
            return LocationMatch()

        counties = self.find_counties(normalized)
        signal = self.has_region_signal(normalized)
        city_counties: set[str] = set()
        if not counties and signal:
            city_counties = self.find_city_counties(normalized)

        return LocationMatch(
            counties=frozenset(counties | city_counties),
            region_signal=signal,
            other_regions=frozenset(self.find_other_regions(normalized)),
            city_counties=frozenset(city_counties),
        )


@lru_cache
def get_gazetteer() -> Gazetteer:
    """Shared Kentucky gazetteer, compiled once per process."""
    return Gazetteer()
