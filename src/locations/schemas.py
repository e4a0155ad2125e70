"""Data models for location matching and tagging."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LocationMatch:
    """What the gazetteer found in a piece of text.

    ``counties`` holds direct "X County" / "X Co." matches plus, when the
    text carries a region signal and no direct match was found, counties
    reached through city names (also listed in ``city_counties``).
    """

    counties: frozenset[str] = field(default_factory=frozenset)
    region_signal: bool = False
    other_regions: frozenset[str] = field(default_factory=frozenset)
    city_counties: frozenset[str] = field(default_factory=frozenset)

    @property
    def in_region(self) -> bool:
        """Evidence the text is about the focal region."""
        return self.region_signal or bool(self.counties)

    @property
    def likely_elsewhere(self) -> bool:
        """Mentions another state and nothing ties it to this one."""
        return bool(self.other_regions) and not self.in_region


@dataclass
class TaggingResult:
    """Outcome of tagging one item."""

    item_id: str
    state_code: str
    counties: list[str] = field(default_factory=list)
    suppressed: bool = False
    skipped: bool = False
    enriched: bool = False
    fetch_status: str | None = None

    @property
    def label(self) -> str:
        """Metrics label for the outcome."""
        if self.skipped:
            return "skipped"
        if self.suppressed:
            return "suppressed"
        return "county" if self.counties else "region_only"
