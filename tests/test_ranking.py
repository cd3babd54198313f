"""
Tests for the ranking rules shared by both matching paths.
"""

import pytest

from artisan_match.entities import ArtisanProfile, MatchQuery, QualityLevel, ScoredCandidate, SortBy
from artisan_match.errors import CatalogUnavailableError
from artisan_match.services.ranking import build_explanation, clip_score, fetch_candidate_pool, rank_candidates


def candidate(profile_id: str, score: float, quality: QualityLevel = QualityLevel.STANDARD, **kwargs) -> ScoredCandidate:
    profile = ArtisanProfile(
        id=profile_id,
        name=f"Artisan {profile_id}",
        profession="pottery",
        quality_level=quality,
        rating=kwargs.pop("rating", 0.0),
        experience_years=kwargs.pop("experience_years", 0),
    )
    return ScoredCandidate(profile=profile, score=score, **kwargs)


def test_orders_by_score_with_quality_then_id_tie_break():
    ranked = rank_candidates(
        [
            candidate("c", 0.5),
            candidate("b", 0.5),
            candidate("a", 0.5, QualityLevel.LUXURY),
            candidate("d", 0.9),
        ],
        MatchQuery(text="clay"),
        pool_size=4,
    )

    assert [m.artisan_id for m in ranked.matches] == ["d", "a", "b", "c"]
    assert [m.rank for m in ranked.matches] == [1, 2, 3, 4]


def test_drops_below_min_score_and_truncates():
    candidates = [candidate(f"p{i}", score) for i, score in enumerate([0.9, 0.1, 0.7, 0.3, 0.19])]

    ranked = rank_candidates(candidates, MatchQuery(text="clay", min_score=0.2, max_results=2), pool_size=5)

    assert [m.artisan_id for m in ranked.matches] == ["p0", "p2"]
    assert ranked.total_found == 3
    assert ranked.pool_size == 5


def test_scores_are_clipped_to_unit_range():
    ranked = rank_candidates(
        [candidate("high", 1.7), candidate("low", -0.4)],
        MatchQuery(text="clay", min_score=0.0),
        pool_size=2,
    )

    assert [m.relevance_score for m in ranked.matches] == [1.0, 0.0]
    assert clip_score(0.123456) == 0.1235


def test_sort_by_rating_uses_score_as_secondary_key():
    ranked = rank_candidates(
        [
            candidate("a", 0.9, rating=4.0),
            candidate("b", 0.4, rating=4.8),
            candidate("c", 0.6, rating=4.8),
        ],
        MatchQuery(text="clay", sort_by=SortBy.RATING),
        pool_size=3,
    )

    assert [m.artisan_id for m in ranked.matches] == ["c", "b", "a"]


def test_sort_by_location_puts_location_matches_first():
    ranked = rank_candidates(
        [candidate("a", 0.9), candidate("b", 0.3, location_match=True)],
        MatchQuery(text="clay delhi", sort_by=SortBy.LOCATION),
        pool_size=2,
    )

    assert [m.artisan_id for m in ranked.matches] == ["b", "a"]


def test_explanations_only_when_requested():
    strong = candidate("a", 0.85, reasons=["Profession matches: pottery", "Located in Delhi (matches 'delhi')"])

    plain = rank_candidates([strong], MatchQuery(text="pottery delhi"), pool_size=1)
    assert plain.matches[0].explanation is None

    explained = rank_candidates(
        [candidate("a", 0.85, reasons=["Profession matches: pottery"])],
        MatchQuery(text="pottery delhi", enable_explanations=True),
        pool_size=1,
    )
    assert explained.matches[0].explanation == "Artisan a (pottery) matches at 85% with high confidence: Profession matches: pottery."


def test_build_explanation_mentions_reduced_confidence():
    text = build_explanation(candidate("a", 0.5, reduced_confidence=True))

    assert text.startswith("Artisan a (pottery) matches at 50% with low confidence based on overall profile similarity")
    assert "could not be compared" in text


def test_empty_candidates():
    ranked = rank_candidates([], MatchQuery(text="clay"), pool_size=0)

    assert ranked.matches == ()
    assert ranked.total_found == 0


class BrokenCatalog:
    async def query_profiles(self, filters):
        raise RuntimeError("connection reset")


async def test_catalog_errors_become_catalog_unavailable():
    with pytest.raises(CatalogUnavailableError):
        await fetch_candidate_pool(BrokenCatalog(), MatchQuery(text="clay").filters)
