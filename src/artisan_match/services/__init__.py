"""Service layer for business logic.

This layer contains the matching logic and its orchestration.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Orchestrator -> {VectorRetrieval | FallbackMatching} -> Repository
    (HTTP)  -> (Business)                                           -> (Data Access)

Usage:
    ```python
    from artisan_match.services import MatchingOrchestrator

    # Using factory method (recommended)
    orchestrator = MatchingOrchestrator.create(catalog=catalog, provider=provider)

    # Or manual creation
    orchestrator = MatchingOrchestrator(
        embedding_client=client,
        retrieval=retrieval,
        fallback=fallback,
        catalog=catalog,
    )
    ```
"""

from .embedding_client import BatchEmbeddingResult, EmbeddingClient
from .fallback_matching import FallbackMatchingService, FallbackPoints
from .orchestrator import MatchingOrchestrator, compute_confidence
from .provider_health import ProviderHealth
from .query_analysis import QueryAnalysis, analyze_query
from .text_normalizer import NormalizerConfig, TextNormalizer
from .vector_retrieval import VectorRetrievalService, cosine_similarity

__all__ = [
    "BatchEmbeddingResult",
    "EmbeddingClient",
    "FallbackMatchingService",
    "FallbackPoints",
    "MatchingOrchestrator",
    "NormalizerConfig",
    "ProviderHealth",
    "QueryAnalysis",
    "TextNormalizer",
    "VectorRetrievalService",
    "analyze_query",
    "compute_confidence",
    "cosine_similarity",
]
