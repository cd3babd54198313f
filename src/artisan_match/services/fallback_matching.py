"""Deterministic keyword matching, used when embeddings are unavailable.

Scores each candidate additively from independent field checks (exact,
substring, synonym or typo-tolerant matches). Every rule that fires adds
its points once and a reason string, so results carry the same shape as
the vector path and go through the same ranking rules.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any

from artisan_match.entities import ArtisanProfile, MatchQuery, RankedMatches, ScoredCandidate
from artisan_match.protocols import CatalogStore
from artisan_match.services.query_analysis import (
    FieldMatches,
    QueryAnalysis,
    analyze_query,
    describe_matches,
    match_fields,
)
from artisan_match.services.ranking import fetch_candidate_pool, rank_candidates
from artisan_match.services.text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FallbackPoints:
    """Points added by each field rule."""

    profession_exact: float = 0.4
    profession_related: float = 0.3
    material: float = 0.2
    technique: float = 0.2
    skill: float = 0.15
    location: float = 0.15
    specialization: float = 0.1
    name: float = 0.1
    description: float = 0.05


class FallbackMatchingService:
    """Keyword, synonym and fuzzy scorer over structured profile fields.

    Makes no embedding calls; depends only on the catalog.

    Example:
        ```python
        fallback = FallbackMatchingService(catalog=catalog)
        ranked = await fallback.search(MatchQuery(text="silver jewelry jaipur"))
        ```
    """

    def __init__(
        self,
        catalog: CatalogStore,
        normalizer: TextNormalizer | None = None,
        points: FallbackPoints | None = None,
        enable_fuzzy: bool = True,
        enable_synonyms: bool = True,
    ) -> None:
        """Initialize the fallback matcher.

        Args:
            catalog: Catalog store providing the candidate pool (required).
            normalizer: Tokenizer for queries and profile text.
            points: Point table. Defaults to FallbackPoints().
            enable_fuzzy: Accept one- or two-letter typos on longer words.
            enable_synonyms: Use the profession/material/technique synonym tables.
        """
        self._catalog = catalog
        self._normalizer = normalizer or TextNormalizer()
        self._points = points or FallbackPoints()
        self._enable_fuzzy = enable_fuzzy
        self._enable_synonyms = enable_synonyms

    async def search(self, query: MatchQuery, analysis: QueryAnalysis | None = None) -> RankedMatches:
        """Score and rank the filtered candidate pool without embeddings.

        Raises:
            CatalogUnavailableError: If the candidate pool cannot be loaded.
        """
        pool = await fetch_candidate_pool(self._catalog, query.filters)
        analysis = analysis or analyze_query(query.text, self._normalizer)
        candidates = [self.score_profile(profile, analysis) for profile in pool]
        ranked = rank_candidates(candidates, query, pool_size=len(pool))
        logger.debug(
            "Fallback matched %d of %d candidates for %r",
            ranked.total_found,
            len(pool),
            query.text,
        )
        return ranked

    def score_profile(self, profile: ArtisanProfile, analysis: QueryAnalysis) -> ScoredCandidate:
        """Score one profile against an analyzed query."""
        matches = match_fields(
            profile,
            analysis,
            self._normalizer,
            fuzzy=self._enable_fuzzy,
            synonyms=self._enable_synonyms,
        )
        return ScoredCandidate(
            profile=profile,
            score=min(1.0, self._points_for(matches)),
            reasons=describe_matches(matches, profile),
            profession_match=bool(matches.profession),
            material_match=bool(matches.materials),
            technique_match=bool(matches.techniques),
            location_match=bool(matches.location),
            specialization_match=bool(matches.specializations),
        )

    def _points_for(self, matches: FieldMatches) -> float:
        points = self._points
        score = 0.0
        if matches.profession:
            score += points.profession_exact if matches.profession_exact else points.profession_related
        if matches.materials:
            score += points.material
        if matches.techniques:
            score += points.technique
        if matches.skills:
            score += points.skill
        if matches.location:
            score += points.location
        if matches.specializations:
            score += points.specialization
        if matches.name:
            score += points.name
        if matches.description:
            score += points.description
        return score

    def get_stats(self) -> dict[str, Any]:
        return {
            "fuzzy": self._enable_fuzzy,
            "synonyms": self._enable_synonyms,
            "points": asdict(self._points),
        }
