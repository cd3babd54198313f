"""
Tests for deterministic keyword matching.
"""

import pytest

from artisan_match.entities import MatchQuery, SearchFilters
from artisan_match.errors import CatalogUnavailableError
from artisan_match.services import FallbackMatchingService, FallbackPoints


async def test_exact_query_ranks_matching_artisan_first(fallback):
    ranked = await fallback.search(MatchQuery(text="silver jewelry jaipur"))

    top = ranked.matches[0]
    assert top.artisan_id == "art-1"
    assert top.rank == 1
    assert top.relevance_score == 0.8
    assert top.profession_match
    assert top.material_match
    assert top.location_match
    assert "art-2" not in [m.artisan_id for m in ranked.matches]


async def test_synonyms_match_related_terms(fallback):
    ranked = await fallback.search(MatchQuery(text="ceramic vases"))

    assert ranked.matches[0].artisan_id == "art-2"
    assert ranked.matches[0].material_match


async def test_typos_match_with_fuzzy_enabled(catalog, normalizer):
    fuzzy = FallbackMatchingService(catalog=catalog, normalizer=normalizer)
    strict = FallbackMatchingService(catalog=catalog, normalizer=normalizer, enable_fuzzy=False)
    query = MatchQuery(text="jewelery silvr")

    ranked = await fuzzy.search(query)
    assert ranked.matches[0].artisan_id == "art-1"
    assert ranked.matches[0].relevance_score == 0.5
    assert "Profession related to: jewelery" in ranked.matches[0].match_reasons

    assert (await strict.search(query)).matches == ()


async def test_score_is_capped_at_one(catalog, normalizer):
    fallback = FallbackMatchingService(
        catalog=catalog,
        normalizer=normalizer,
        points=FallbackPoints(profession_exact=0.9, material=0.9),
    )

    ranked = await fallback.search(MatchQuery(text="silver jewelry jaipur"))

    assert ranked.matches[0].relevance_score == 1.0


async def test_filters_restrict_candidate_pool(fallback):
    ranked = await fallback.search(MatchQuery(text="pottery", filters=SearchFilters(location="delhi")))

    assert ranked.pool_size == 1
    assert [m.artisan_id for m in ranked.matches] == ["art-2"]


async def test_explanations_are_attached(fallback):
    ranked = await fallback.search(MatchQuery(text="silver jewelry jaipur", enable_explanations=True))

    assert ranked.matches[0].explanation.startswith(
        "Lakshmi Devi (jewelry, Jaipur, Rajasthan) matches at 80% with medium confidence: Profession matches: jewelry"
    )


async def test_makes_no_embedding_calls(fallback, provider):
    await fallback.search(MatchQuery(text="teak chair udaipur"))
    assert provider.calls == 0


async def test_catalog_failure_is_raised(fallback, catalog):
    catalog.unavailable = True

    with pytest.raises(CatalogUnavailableError):
        await fallback.search(MatchQuery(text="silver"))


def test_stats_report_point_table(fallback):
    stats = fallback.get_stats()

    assert stats["fuzzy"] is True
    assert stats["points"]["profession_exact"] == 0.4
