"""Search query domain entities."""

import json
from dataclasses import asdict, dataclass
from enum import Enum

from artisan_match.entities.profile import (
    ArtisanProfile,
    AvailabilityStatus,
    ExperienceLevel,
    QualityLevel,
)
from artisan_match.vocabulary import MATERIAL_SYNONYMS, PROFESSION_SYNONYMS, TECHNIQUE_SYNONYMS, terms_match


class SortBy(str, Enum):
    """Ordering applied to a ranked result list."""

    RELEVANCE = "relevance"
    RATING = "rating"
    EXPERIENCE = "experience"
    LOCATION = "location"
    RECENT = "recent"


@dataclass(frozen=True)
class SearchFilters:
    """Structured filters that define the candidate pool.

    Materials and techniques are conjunctive: a profile must cover every
    requested value. Experience and quality are minimum levels.
    """

    profession: str | None = None
    materials: tuple[str, ...] = ()
    techniques: tuple[str, ...] = ()
    location: str | None = None
    experience_level: ExperienceLevel | None = None
    availability: AvailabilityStatus | None = None
    quality_level: QualityLevel | None = None

    @property
    def is_empty(self) -> bool:
        return self == SearchFilters()

    def cache_key(self) -> str:
        """Stable string form of the filter set, used in cache keys."""
        data = {key: value for key, value in asdict(self).items() if value not in (None, ())}
        for key, value in data.items():
            if isinstance(value, Enum):
                data[key] = value.value
            elif isinstance(value, tuple):
                data[key] = sorted(item.lower() for item in value)
            elif isinstance(value, str):
                data[key] = value.lower().strip()
        return json.dumps(data, sort_keys=True)

    def matches(self, profile: ArtisanProfile) -> bool:
        """Check whether a profile passes every filter."""
        if self.profession and not terms_match(self.profession, [profile.profession], PROFESSION_SYNONYMS):
            return False
        for material in self.materials:
            if not terms_match(material, profile.materials, MATERIAL_SYNONYMS):
                return False
        for technique in self.techniques:
            if not terms_match(technique, profile.techniques, TECHNIQUE_SYNONYMS):
                return False
        if self.location and self.location.lower().strip() not in profile.location.lower():
            return False
        if self.experience_level and profile.experience_level.rank < self.experience_level.rank:
            return False
        if self.availability and profile.availability != self.availability:
            return False
        if self.quality_level and profile.quality_level.rank < self.quality_level.rank:
            return False
        return True


@dataclass(frozen=True)
class MatchQuery:
    """A buyer search request, request-scoped.

    Attributes:
        text: Raw query text
        filters: Structured filters for the candidate pool
        max_results: Maximum number of ranked matches returned
        min_score: Matches scoring below this are dropped
        sort_by: Ordering of the final list
        enable_explanations: Attach a prose explanation to each match
    """

    text: str
    filters: SearchFilters = SearchFilters()
    max_results: int = 20
    min_score: float = 0.2
    sort_by: SortBy = SortBy.RELEVANCE
    enable_explanations: bool = False
