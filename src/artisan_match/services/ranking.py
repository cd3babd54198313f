"""Candidate pool loading and the ranking rules shared by both matching paths."""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from artisan_match.entities import (
    ArtisanProfile,
    MatchQuery,
    MatchResult,
    RankedMatches,
    ScoredCandidate,
    SearchFilters,
    SortBy,
)
from artisan_match.errors import CatalogUnavailableError
from artisan_match.protocols import CatalogStore

logger = logging.getLogger(__name__)


async def fetch_candidate_pool(catalog: CatalogStore, filters: SearchFilters) -> list[ArtisanProfile]:
    """Load the profiles that pass the structured filters.

    Raises:
        CatalogUnavailableError: If the catalog cannot be read.
    """
    try:
        return list(await catalog.query_profiles(filters))
    except CatalogUnavailableError:
        logger.error("Catalog store unavailable (filters=%s)", filters.cache_key())
        raise
    except Exception as e:
        logger.error("Catalog store query failed: %s", e)
        raise CatalogUnavailableError(f"Catalog query failed: {e}") from e


def _tie_break(candidate: ScoredCandidate) -> tuple[int, str]:
    return (-candidate.profile.quality_level.rank, candidate.profile.id)


_SORT_KEYS: dict[SortBy, Callable[[ScoredCandidate], tuple[Any, ...]]] = {
    SortBy.RELEVANCE: lambda c: (-c.score, *_tie_break(c)),
    SortBy.RATING: lambda c: (-c.profile.rating, -c.score, *_tie_break(c)),
    SortBy.EXPERIENCE: lambda c: (-c.profile.experience_years, -c.score, *_tie_break(c)),
    SortBy.LOCATION: lambda c: (not c.location_match, -c.score, *_tie_break(c)),
    SortBy.RECENT: lambda c: (-c.profile.updated_at.timestamp(), -c.score, *_tie_break(c)),
}


def clip_score(score: float) -> float:
    """Clamp a score to [0, 1], rounded so equal scores compare equal."""
    return round(min(1.0, max(0.0, score)), 4)


def build_explanation(candidate: ScoredCandidate) -> str:
    """One-sentence explanation of why a candidate matched."""
    if candidate.score > 0.8:
        level = "high"
    elif candidate.score > 0.6:
        level = "medium"
    else:
        level = "low"

    profile = candidate.profile
    where = f", {profile.location}" if profile.location else ""
    summary = f"{profile.name} ({profile.profession}{where}) matches at {candidate.score:.0%} with {level} confidence"
    if candidate.reasons:
        summary += ": " + "; ".join(candidate.reasons[:3])
    else:
        summary += " based on overall profile similarity"
    if candidate.reduced_confidence:
        summary += " (some profile fields could not be compared)"
    return summary + "."


def rank_candidates(
    candidates: Iterable[ScoredCandidate],
    query: MatchQuery,
    pool_size: int,
) -> RankedMatches:
    """Apply the shared ranking rules to scored candidates.

    Candidates below ``min_score`` are dropped, the rest are ordered by
    ``sort_by`` (relevance ties broken by quality level, then id),
    truncated to ``max_results`` and numbered 1..N.

    Args:
        candidates: Scored candidates from either matching path.
        query: The query (min_score, max_results, sort_by, explanations).
        pool_size: Size of the candidate pool the scores came from.

    Returns:
        RankedMatches with contiguous ranks.
    """
    eligible = []
    for candidate in candidates:
        candidate.score = clip_score(candidate.score)
        if candidate.score >= query.min_score:
            eligible.append(candidate)

    eligible.sort(key=_SORT_KEYS[query.sort_by])
    top = eligible[: query.max_results]

    matches = tuple(
        MatchResult(
            profile=candidate.profile,
            relevance_score=candidate.score,
            rank=rank,
            match_reasons=tuple(candidate.reasons),
            profession_match=candidate.profession_match,
            material_match=candidate.material_match,
            technique_match=candidate.technique_match,
            location_match=candidate.location_match,
            specialization_match=candidate.specialization_match,
            reduced_confidence=candidate.reduced_confidence,
            explanation=build_explanation(candidate) if query.enable_explanations else None,
        )
        for rank, candidate in enumerate(top, start=1)
    )
    return RankedMatches(matches=matches, total_found=len(eligible), pool_size=pool_size)
