"""Matching orchestrator: the single entry point for buyer searches.

Per request: validate, check provider health once, run the vector path
under one timeout, and fall back to keyword matching if the provider is
unhealthy or the vector attempt fails for any reason. Only an invalid
query or an unreadable catalog ever reaches the caller as an error.
"""

import asyncio
import dataclasses
import logging
import time
from typing import Any

from artisan_match.config import settings
from artisan_match.entities import MatchQuery, RankedMatches, SearchOutcome, SearchType
from artisan_match.errors import (
    CatalogUnavailableError,
    EmbeddingProviderError,
    EmbeddingTimeoutError,
    InvalidQueryError,
)
from artisan_match.models import MatchingMetrics
from artisan_match.protocols import CatalogStore, EmbeddingProvider, EmbeddingStore
from artisan_match.services.embedding_client import EmbeddingClient
from artisan_match.services.fallback_matching import FallbackMatchingService
from artisan_match.services.query_analysis import QueryAnalysis, analyze_query
from artisan_match.services.vector_retrieval import VectorRetrievalService

logger = logging.getLogger(__name__)

CONFIDENCE_TOP_K = 5
VECTOR_CONFIDENCE_BONUS = 0.1
FALLBACK_CONFIDENCE_FACTOR = 0.8


def compute_confidence(ranked: RankedMatches, search_type: SearchType, provider_healthy: bool) -> float:
    """How much to trust a ranked list, in [0, 1].

    Combines the top score, the spread between rank 1 and rank K (K = 5,
    or fewer when fewer matches came back) and the candidate pool size.
    The vector path gets a bonus while the provider is healthy; fallback
    results are discounted. An empty list has confidence 0.
    """
    scores = sorted((match.relevance_score for match in ranked.matches), reverse=True)
    if not scores:
        return 0.0

    top = scores[0]
    k = min(CONFIDENCE_TOP_K, len(scores))
    spread = top - scores[k - 1] if len(scores) > 1 else top
    spread_term = min(1.0, spread / 0.5)
    pool_term = min(1.0, ranked.pool_size / CONFIDENCE_TOP_K)

    confidence = 0.5 * top + 0.3 * spread_term + 0.2 * pool_term
    if search_type is SearchType.INTELLIGENT and provider_healthy:
        confidence += VECTOR_CONFIDENCE_BONUS
    elif search_type is SearchType.FALLBACK:
        confidence *= FALLBACK_CONFIDENCE_FACTOR
    return round(min(1.0, max(0.0, confidence)), 4)


class MatchingOrchestrator:
    """Chooses between vector retrieval and fallback matching for each query.

    This service depends on its collaborators explicitly, so each can be
    replaced by a test double:
    - EmbeddingClient: health decision and query embeddings
    - VectorRetrievalService: similarity ranking
    - FallbackMatchingService: keyword ranking
    - CatalogStore: candidate profiles

    Example:
        ```python
        from artisan_match.repositories import InMemoryCatalogStore, OllamaEmbeddingProvider
        from artisan_match.services import MatchingOrchestrator

        orchestrator = MatchingOrchestrator.create(
            catalog=InMemoryCatalogStore.from_json("catalog.json"),
            provider=OllamaEmbeddingProvider.create(),
        )
        outcome = await orchestrator.search(MatchQuery(text="silver jewelry jaipur"))
        print(outcome.search_type, outcome.confidence)
        ```
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        retrieval: VectorRetrievalService,
        fallback: FallbackMatchingService,
        catalog: CatalogStore,
        vector_timeout: float = 8.0,
        max_results_cap: int = 50,
        metrics: MatchingMetrics | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            embedding_client: Embedding client (required).
            retrieval: Vector retrieval service (required).
            fallback: Fallback matching service (required).
            catalog: Catalog store (required).
            vector_timeout: Seconds the whole vector path may take.
            max_results_cap: Upper bound applied to any requested max_results.
            metrics: Request metrics. Defaults to a fresh MatchingMetrics.
        """
        self._client = embedding_client
        self._retrieval = retrieval
        self._fallback = fallback
        self._catalog = catalog
        self._vector_timeout = vector_timeout
        self._max_results_cap = max_results_cap
        self._metrics = metrics or MatchingMetrics()

    @classmethod
    def create(
        cls,
        catalog: CatalogStore,
        provider: EmbeddingProvider,
        record_store: EmbeddingStore | None = None,
    ) -> "MatchingOrchestrator":
        """Factory method wiring every service from settings.

        Args:
            catalog: Catalog store (required).
            provider: Embedding provider (required).
            record_store: Embedding record store. If None, in-memory.

        Returns:
            Configured MatchingOrchestrator
        """
        client = EmbeddingClient.create(provider=provider)
        fallback = FallbackMatchingService(catalog=catalog, normalizer=client.normalizer)
        return cls(
            embedding_client=client,
            retrieval=VectorRetrievalService.create(
                catalog=catalog,
                embedding_client=client,
                record_store=record_store,
                keyword_scorer=fallback,
            ),
            fallback=fallback,
            catalog=catalog,
            vector_timeout=settings.vector_path_timeout,
            max_results_cap=settings.max_results_cap,
        )

    async def search(self, query: MatchQuery) -> SearchOutcome:
        """Answer a search query.

        Business logic:
        1. Reject empty queries before any downstream call
        2. Clamp max_results and min_score
        3. Check provider health once
        4. Healthy: run the vector path under one timeout; on any failure
           switch to the fallback path for this same request
        5. Unhealthy: run the fallback path directly
        6. Compute confidence and attach the query analysis

        Args:
            query: The search query

        Returns:
            SearchOutcome with ranked matches

        Raises:
            InvalidQueryError: If the query text is empty or whitespace
            CatalogUnavailableError: If no candidate pool can be loaded
        """
        start_time = time.perf_counter()
        if not query.text or not query.text.strip():
            self._metrics.record_invalid()
            raise InvalidQueryError("Query text must not be empty")

        query = self._clamp(query)
        analysis = analyze_query(query.text, self._client.normalizer)
        provider_healthy = self._client.is_healthy()

        ranked: RankedMatches | None = None
        search_type = SearchType.FALLBACK
        if provider_healthy:
            ranked = await self._try_vector_path(query, analysis)
            if ranked is None:
                self._metrics.record_vector_failure()
            else:
                search_type = SearchType.INTELLIGENT
        else:
            logger.warning("Embedding provider unhealthy; answering %r with fallback matching", query.text)

        if ranked is None:
            ranked = await self._fallback.search(query, analysis)

        processing_time_ms = (time.perf_counter() - start_time) * 1000
        self._metrics.record_search(search_type, processing_time_ms)

        query_analysis = analysis.to_dict()
        query_analysis["pool_size"] = ranked.pool_size
        query_analysis["provider_healthy"] = provider_healthy

        return SearchOutcome(
            matches=ranked.matches,
            total_found=ranked.total_found,
            processing_time_ms=processing_time_ms,
            search_type=search_type,
            confidence=compute_confidence(ranked, search_type, provider_healthy),
            query_analysis=query_analysis,
        )

    async def _try_vector_path(self, query: MatchQuery, analysis: QueryAnalysis) -> RankedMatches | None:
        """Run the vector path; None means the caller should fall back."""
        try:
            return await asyncio.wait_for(
                self._retrieval.search(query, analysis),
                timeout=self._vector_timeout,
            )
        except CatalogUnavailableError:
            raise
        except asyncio.TimeoutError:
            error = EmbeddingTimeoutError(
                f"Vector path exceeded {self._vector_timeout:.2f}s", call="vector_path"
            )
            self._client.health.record_failure(error)
            logger.warning("Vector path timed out; falling back (%s)", error)
        except EmbeddingProviderError as e:
            logger.warning(
                "Vector path failed in %s: %s (transient=%s); falling back",
                e.call,
                type(e).__name__,
                e.transient,
            )
        except Exception:
            logger.exception("Vector path failed unexpectedly; falling back")
        return None

    def _clamp(self, query: MatchQuery) -> MatchQuery:
        max_results = min(max(1, query.max_results), self._max_results_cap)
        min_score = min(1.0, max(0.0, query.min_score))
        if max_results == query.max_results and min_score == query.min_score:
            return query
        return dataclasses.replace(query, max_results=max_results, min_score=min_score)

    def invalidate_profile(self, profile_id: str) -> int:
        """Drop cached results and embeddings that reference a profile."""
        return self._retrieval.invalidate_profile(profile_id)

    async def health_check(self) -> dict[str, Any]:
        """Check the embedding provider, the record store and the catalog.

        Returns:
            Dict with per-component health
        """
        provider_available = await self._client.is_available()
        records_healthy = self._retrieval.record_store.health_check()
        try:
            await self._catalog.get_profile("__health__")
            catalog_healthy = True
        except Exception as e:
            logger.error("Catalog health check failed: %s", e)
            catalog_healthy = False

        return {
            "catalog_healthy": catalog_healthy,
            "embedding_healthy": self._client.is_healthy() and provider_available,
            "embedding_store_healthy": records_healthy,
            "provider": self._client.health.snapshot(),
        }

    def get_stats(self) -> dict[str, Any]:
        """Get orchestrator statistics.

        Returns:
            Dictionary with request, embedding, retrieval and fallback stats
        """
        return {
            "searches": self._metrics.to_dict(),
            "embeddings": self._client.get_stats(),
            "retrieval": self._retrieval.get_stats(),
            "fallback": self._fallback.get_stats(),
            "vector_timeout": self._vector_timeout,
            "max_results_cap": self._max_results_cap,
        }

    async def close(self) -> None:
        await self._client.close()

    @property
    def metrics(self) -> MatchingMetrics:
        return self._metrics

    @property
    def embedding_client(self) -> EmbeddingClient:
        """Get the underlying embedding client (for testing)."""
        return self._client
