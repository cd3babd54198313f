"""
Tests for the matching orchestrator: path selection, fallback and confidence.
"""

import pytest

from artisan_match.entities import ArtisanProfile, MatchQuery, MatchResult, RankedMatches, SearchType
from artisan_match.errors import CatalogUnavailableError, InvalidQueryError
from artisan_match.services import MatchingOrchestrator, compute_confidence


def ranked_with(scores: list[float], pool_size: int) -> RankedMatches:
    matches = tuple(
        MatchResult(
            profile=ArtisanProfile(id=f"p{rank}", name="Artisan", profession="pottery"),
            relevance_score=score,
            rank=rank,
        )
        for rank, score in enumerate(scores, start=1)
    )
    return RankedMatches(matches=matches, total_found=len(matches), pool_size=pool_size)


@pytest.mark.parametrize("text", ["", "   ", "\t\n"])
async def test_empty_query_is_rejected_before_any_call(orchestrator, provider, catalog, text):
    with pytest.raises(InvalidQueryError):
        await orchestrator.search(MatchQuery(text=text))

    assert provider.calls == 0
    assert catalog.queries == 0
    assert orchestrator.metrics.invalid_queries == 1


async def test_healthy_provider_uses_vector_path(orchestrator):
    outcome = await orchestrator.search(MatchQuery(text="silver jewelry jaipur", min_score=0.1))

    assert outcome.search_type is SearchType.INTELLIGENT
    assert outcome.matches[0].artisan_id == "art-1"
    assert 0.0 < outcome.confidence <= 1.0
    assert outcome.query_analysis["professions"] == ["jewelry"]
    assert outcome.query_analysis["pool_size"] == 4
    assert outcome.query_analysis["provider_healthy"] is True


async def test_unhealthy_provider_goes_straight_to_fallback(orchestrator, provider, health):
    for _ in range(3):
        health.record_failure("transport")

    outcome = await orchestrator.search(MatchQuery(text="silver jewelry jaipur"))

    assert outcome.search_type is SearchType.FALLBACK
    assert provider.calls == 0
    assert outcome.matches[0].artisan_id == "art-1"
    assert outcome.matches[0].relevance_score == 0.8
    assert all(0.0 <= match.relevance_score <= 1.0 for match in outcome.matches)
    assert outcome.query_analysis["provider_healthy"] is False


async def test_provider_failure_falls_back_in_same_request(orchestrator, provider):
    provider.fail = True

    outcome = await orchestrator.search(MatchQuery(text="silver jewelry jaipur"))

    assert outcome.search_type is SearchType.FALLBACK
    assert outcome.matches[0].artisan_id == "art-1"


async def test_hanging_provider_falls_back(orchestrator, provider):
    provider.hang = True

    outcome = await orchestrator.search(MatchQuery(text="teak chair"))

    assert outcome.search_type is SearchType.FALLBACK
    assert outcome.matches[0].artisan_id == "art-3"


async def test_vector_path_timeout_is_recorded_in_health(client, retrieval, fallback, catalog, provider):
    orchestrator = MatchingOrchestrator(
        embedding_client=client,
        retrieval=retrieval,
        fallback=fallback,
        catalog=catalog,
        vector_timeout=0.05,
    )
    provider.hang = True

    outcome = await orchestrator.search(MatchQuery(text="blue pottery"))

    assert outcome.search_type is SearchType.FALLBACK
    assert client.health.snapshot()["last_error"] == "EmbeddingTimeoutError"


async def test_catalog_unavailable_is_raised(orchestrator, catalog):
    catalog.unavailable = True

    with pytest.raises(CatalogUnavailableError):
        await orchestrator.search(MatchQuery(text="silver jewelry"))


async def test_max_results_is_clamped(client, retrieval, fallback, catalog):
    orchestrator = MatchingOrchestrator(
        embedding_client=client,
        retrieval=retrieval,
        fallback=fallback,
        catalog=catalog,
        max_results_cap=2,
    )

    outcome = await orchestrator.search(MatchQuery(text="handmade crafts", max_results=100, min_score=-1.0))

    assert len(outcome.matches) == 2
    assert outcome.total_found == 4


async def test_results_are_deterministic(orchestrator, health):
    for _ in range(3):
        health.record_failure("transport")
    query = MatchQuery(text="carved wooden furniture", min_score=0.0)

    first = await orchestrator.search(query)
    second = await orchestrator.search(query)

    assert [(m.artisan_id, m.relevance_score) for m in first.matches] == [
        (m.artisan_id, m.relevance_score) for m in second.matches
    ]
    assert first.confidence == second.confidence


async def test_metrics_count_each_path(orchestrator, provider):
    await orchestrator.search(MatchQuery(text="silk saree"))
    provider.fail = True
    await orchestrator.search(MatchQuery(text="clay pot"))

    metrics = orchestrator.metrics
    assert metrics.total_searches == 2
    assert metrics.intelligent_searches == 1
    assert metrics.fallback_searches == 1
    assert metrics.fallback_rate == 0.5
    assert metrics.fallback_after_error == 1


async def test_health_check_reports_components(orchestrator, catalog):
    healthy = await orchestrator.health_check()
    assert healthy["catalog_healthy"] is True
    assert healthy["embedding_healthy"] is True
    assert healthy["embedding_store_healthy"] is True

    catalog.unavailable = True
    assert (await orchestrator.health_check())["catalog_healthy"] is False


async def test_invalidate_profile_drops_cached_results(orchestrator):
    await orchestrator.search(MatchQuery(text="silk saree"))

    assert orchestrator.invalidate_profile("art-4") == 1


def test_confidence_is_zero_for_empty_results():
    assert compute_confidence(ranked_with([], pool_size=4), SearchType.INTELLIGENT, True) == 0.0


def test_confidence_bonus_and_discount():
    ranked = ranked_with([0.9, 0.4], pool_size=10)

    assert compute_confidence(ranked, SearchType.INTELLIGENT, True) == 1.0
    assert compute_confidence(ranked, SearchType.FALLBACK, False) == 0.76


def test_confidence_for_single_match_without_bonus():
    ranked = ranked_with([0.5], pool_size=1)

    assert compute_confidence(ranked, SearchType.INTELLIGENT, False) == 0.59
