"""Domain entities for internal representation.

These are plain dataclasses (frozen where the value is a snapshot) used
internally by services and repositories. They are NOT used for API
contracts - use DTOs from the dto package for that.
"""

from .cache_entry import CacheEntry
from .embedding_record import EmbeddingRecord
from .match import MatchResult, RankedMatches, ScoredCandidate, SearchOutcome, SearchType
from .profile import ArtisanProfile, AvailabilityStatus, ExperienceLevel, QualityLevel
from .query import MatchQuery, SearchFilters, SortBy

__all__ = [
    "ArtisanProfile",
    "AvailabilityStatus",
    "CacheEntry",
    "EmbeddingRecord",
    "ExperienceLevel",
    "MatchQuery",
    "MatchResult",
    "QualityLevel",
    "RankedMatches",
    "ScoredCandidate",
    "SearchFilters",
    "SearchOutcome",
    "SearchType",
    "SortBy",
]
