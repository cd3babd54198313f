"""Match result domain entities."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from artisan_match.entities.profile import ArtisanProfile


class SearchType(str, Enum):
    """Matching path that produced a result list."""

    INTELLIGENT = "intelligent"
    FALLBACK = "fallback"


@dataclass
class ScoredCandidate:
    """A candidate with its relevance score, before ranking.

    Attributes:
        profile: The candidate profile
        score: Relevance score in [0, 1]
        reasons: Human-readable reasons, in the order they were found
        profession_match: Query profession matches the profile
        material_match: A query material matches the profile
        technique_match: A query technique matches the profile
        location_match: A query location term matches the profile
        specialization_match: A query term matches a specialization
        reduced_confidence: Some embedded fields were unavailable
    """

    profile: ArtisanProfile
    score: float
    reasons: list[str] = field(default_factory=list)
    profession_match: bool = False
    material_match: bool = False
    technique_match: bool = False
    location_match: bool = False
    specialization_match: bool = False
    reduced_confidence: bool = False


@dataclass(frozen=True)
class MatchResult:
    """A ranked match, as returned to callers."""

    profile: ArtisanProfile
    relevance_score: float
    rank: int
    match_reasons: tuple[str, ...] = ()
    profession_match: bool = False
    material_match: bool = False
    technique_match: bool = False
    location_match: bool = False
    specialization_match: bool = False
    reduced_confidence: bool = False
    explanation: str | None = None

    @property
    def artisan_id(self) -> str:
        return self.profile.id


@dataclass(frozen=True)
class RankedMatches:
    """Output of one matching path.

    Attributes:
        matches: Ranked matches (ranks 1..N, contiguous)
        total_found: Candidates at or above the minimum score, before truncation
        pool_size: Size of the filtered candidate pool
    """

    matches: tuple[MatchResult, ...]
    total_found: int
    pool_size: int


@dataclass(frozen=True)
class SearchOutcome:
    """Final orchestrator output for one query."""

    matches: tuple[MatchResult, ...]
    total_found: int
    processing_time_ms: float
    search_type: SearchType
    confidence: float
    query_analysis: dict[str, Any] | None = None
